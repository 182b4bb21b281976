"""Environment configuration and validation."""

import os
from dataclasses import dataclass, asdict
from typing import Optional

from dotenv import load_dotenv, find_dotenv

from ..constants import (
    DEFAULT_AGENT_MODEL,
    DEFAULT_MODEL_NAME,
    DOM_SETTLE_TIMEOUT_MS,
)

import logging
logger = logging.getLogger(__name__)

load_dotenv(find_dotenv(filename=".env", usecwd=True))


ENGINES = ("stagehand", "selenium")

LOCAL_CDP_REQUIRED_MESSAGE = (
    "Using a local browser without providing a CDP URL is not supported. "
    "Please provide a CDP URL using the LOCAL_CDP_URL environment variable.\n\n"
    'To launch your browser in "debug", see our documentation.\n\n'
    "https://docs.stagehand.dev/examples/customize_browser#use-your-personal-browser"
)


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable per-connection engine configuration.

    Attributes:
        engine: Automation backend, "stagehand" or "selenium"
        browserbase_api_key: Browserbase credentials (remote sessions)
        browserbase_project_id: Browserbase project the sessions belong to
        context_id: Browserbase context to persist cookies/storage into
        browserbase_session_id: Existing remote session to resume instead of creating one
        local_cdp_url: DevTools endpoint of a debuggable local Chrome
        selenium_remote_url: Remote WebDriver (Selenium Grid) endpoint
        headless: Launch a local Chrome headless (selenium engine only)
        model_name: Model used for act/observe/extract
        model_api_key: API key for model_name
        agent_model: Model used by the autonomous agent
        agent_api_key: API key for agent_model
        dom_settle_timeout_ms: How long the engine waits for the DOM to settle
    """

    engine: str = "stagehand"
    browserbase_api_key: Optional[str] = None
    browserbase_project_id: Optional[str] = None
    context_id: Optional[str] = None
    browserbase_session_id: Optional[str] = None
    local_cdp_url: Optional[str] = None
    selenium_remote_url: Optional[str] = None
    headless: bool = False
    model_name: str = DEFAULT_MODEL_NAME
    model_api_key: Optional[str] = None
    agent_model: str = DEFAULT_AGENT_MODEL
    agent_api_key: Optional[str] = None
    dom_settle_timeout_ms: int = DOM_SETTLE_TIMEOUT_MS

    @property
    def env(self) -> str:
        """Stagehand environment: BROWSERBASE when credentials exist, LOCAL otherwise."""
        if self.browserbase_api_key and self.browserbase_project_id:
            return "BROWSERBASE"
        return "LOCAL"

    def redacted(self) -> dict:
        """Return the configuration as a dict with credentials masked, safe to log."""
        data = asdict(self)
        for key in ("browserbase_api_key", "model_api_key", "agent_api_key"):
            data[key] = "SET" if data.get(key) else "NOT SET"
        data["env"] = self.env
        return data


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _env_flag(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def get_env_config() -> EngineConfig:
    """
    Read environment variables into an EngineConfig.

    Optional:   BROWSERBASE_API_KEY, BROWSERBASE_PROJECT_ID
                CONTEXT_ID (Browserbase context persisted across sessions)
                BROWSERBASE_SESSION_ID (resume an existing remote session)
                LOCAL_CDP_URL
                SELENIUM_REMOTE_URL
                STAGEHAND_ENGINE (default 'stagehand')
                STAGEHAND_HEADLESS (default 0)
                STAGEHAND_MODEL_NAME (default 'gpt-4o')
                MODEL_API_KEY (falls back to OPENAI_API_KEY, then ANTHROPIC_API_KEY)
                STAGEHAND_AGENT_MODEL (default 'computer-use-preview')
                OPENAI_API_KEY (agent)

    Nothing is required here. Whether the combination is usable is checked
    by validate_engine_config() when a session is created, so a connection
    can still list tools with an incomplete environment.
    """
    engine = (_env("STAGEHAND_ENGINE") or "stagehand").lower()
    if engine not in ENGINES:
        raise EnvironmentError(f"STAGEHAND_ENGINE must be one of {', '.join(ENGINES)}; got '{engine}'.")

    settle_env = _env("STAGEHAND_DOM_SETTLE_TIMEOUT_MS") or ""
    settle_ms = int(settle_env) if settle_env.isdigit() else DOM_SETTLE_TIMEOUT_MS

    return EngineConfig(
        engine=engine,
        browserbase_api_key=_env("BROWSERBASE_API_KEY"),
        browserbase_project_id=_env("BROWSERBASE_PROJECT_ID"),
        context_id=_env("CONTEXT_ID"),
        browserbase_session_id=_env("BROWSERBASE_SESSION_ID"),
        local_cdp_url=_env("LOCAL_CDP_URL"),
        selenium_remote_url=_env("SELENIUM_REMOTE_URL"),
        headless=_env_flag("STAGEHAND_HEADLESS"),
        model_name=_env("STAGEHAND_MODEL_NAME") or DEFAULT_MODEL_NAME,
        model_api_key=_env("MODEL_API_KEY") or _env("OPENAI_API_KEY") or _env("ANTHROPIC_API_KEY"),
        agent_model=_env("STAGEHAND_AGENT_MODEL") or DEFAULT_AGENT_MODEL,
        agent_api_key=_env("OPENAI_API_KEY"),
        dom_settle_timeout_ms=settle_ms,
    )


def validate_engine_config(config: EngineConfig) -> None:
    """
    Raise EnvironmentError if the configuration cannot produce a browser session.

    The stagehand engine needs either Browserbase credentials or a CDP URL of
    a local browser. The selenium engine can always launch a local Chrome.
    """
    if config.engine not in ENGINES:
        raise EnvironmentError(f"Unknown engine '{config.engine}'. Expected one of {', '.join(ENGINES)}.")

    if config.engine == "stagehand":
        if bool(config.browserbase_api_key) != bool(config.browserbase_project_id):
            raise EnvironmentError(
                "BROWSERBASE_API_KEY and BROWSERBASE_PROJECT_ID must be set together."
            )
        if config.env == "LOCAL" and not config.local_cdp_url:
            raise EnvironmentError(LOCAL_CDP_REQUIRED_MESSAGE)
