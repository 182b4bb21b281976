"""Stagehand-backed engine: AI-driven actions on Browserbase or a local CDP browser."""

from typing import Any, Optional

from stagehand import Stagehand, StagehandConfig

from ..config import EngineConfig
from ..constants import BROWSERBASE_LIVE_VIEW_URL, SESSION_PROBE_EXPRESSION
from .engine import EngineAgent, EngineHandle, EnginePage

import logging
logger = logging.getLogger(__name__)


def build_stagehand_config(config: EngineConfig) -> StagehandConfig:
    """Translate our EngineConfig into the engine's own configuration."""
    session_create_params = None
    if config.env == "BROWSERBASE":
        session_create_params = {"projectId": config.browserbase_project_id}
        if config.context_id:
            session_create_params["browserSettings"] = {
                "context": {"id": config.context_id, "persist": True},
            }

    local_launch_options = None
    if config.local_cdp_url:
        local_launch_options = {"cdp_url": config.local_cdp_url}

    return StagehandConfig(
        env=config.env,
        api_key=config.browserbase_api_key,
        project_id=config.browserbase_project_id,
        browserbase_session_id=config.browserbase_session_id,
        browserbase_session_create_params=session_create_params,
        local_browser_launch_options=local_launch_options,
        model_name=config.model_name,
        model_api_key=config.model_api_key,
        dom_settle_timeout_ms=config.dom_settle_timeout_ms,
        use_api=False,
        verbose=0,
    )


class StagehandEnginePage(EnginePage):
    def __init__(self, page):
        self._page = page

    async def goto(self, url: str) -> None:
        await self._page.goto(url, wait_until="domcontentloaded")

    async def act(self, action: str, variables: Optional[dict] = None) -> Any:
        if variables:
            return await self._page.act(action, variables=variables)
        return await self._page.act(action)

    async def observe(self, instruction: str) -> Any:
        return await self._page.observe(instruction)

    async def extract(self, instruction: str, schema: Optional[dict] = None) -> Any:
        if schema is not None:
            return await self._page.extract(instruction, schema_definition=schema)
        return await self._page.extract(instruction)

    async def evaluate(self, expression: str) -> Any:
        return await self._page.evaluate(expression)

    async def content(self) -> str:
        return await self._page.content()

    async def screenshot(self, full_page: bool = False) -> bytes:
        return await self._page.screenshot(full_page=full_page)

    async def wait_for_settle(self, timeout_ms: int) -> None:
        await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)


class StagehandEngineAgent(EngineAgent):
    def __init__(self, agent):
        self._agent = agent

    async def execute(self, instruction: str, max_steps: Optional[int] = None) -> Any:
        if max_steps:
            return await self._agent.execute(instruction, max_steps=max_steps)
        return await self._agent.execute(instruction)


class StagehandEngineHandle(EngineHandle):
    engine_name = "stagehand"

    def __init__(self, stagehand: Stagehand, config: EngineConfig):
        self._stagehand = stagehand
        self._config = config
        self._page = StagehandEnginePage(stagehand.page)

    @classmethod
    async def create(cls, config: EngineConfig) -> "StagehandEngineHandle":
        stagehand = Stagehand(build_stagehand_config(config))
        await stagehand.init()
        logger.info(
            "Stagehand initialized (env=%s, session=%s)",
            config.env,
            getattr(stagehand, "session_id", None),
        )
        return cls(stagehand, config)

    @property
    def page(self) -> StagehandEnginePage:
        return self._page

    @property
    def browser(self) -> Any:
        return getattr(self._stagehand, "context", None)

    @property
    def session_id(self) -> Optional[str]:
        return getattr(self._stagehand, "session_id", None)

    @property
    def live_view_url(self) -> Optional[str]:
        if self._config.env != "BROWSERBASE" or not self.session_id:
            return None
        return BROWSERBASE_LIVE_VIEW_URL.format(session_id=self.session_id)

    async def probe(self) -> None:
        await self._page.evaluate(SESSION_PROBE_EXPRESSION)

    def agent(self, options: dict) -> StagehandEngineAgent:
        return StagehandEngineAgent(self._stagehand.agent(**options))

    async def close(self) -> None:
        await self._stagehand.close()


__all__ = [
    "build_stagehand_config",
    "StagehandEnginePage",
    "StagehandEngineAgent",
    "StagehandEngineHandle",
]
