"""Selenium-backed engine: WebDriver navigation, evaluation and screenshots.

AI-driven capabilities (act, observe, instruction-driven extract, agent) are
not available here and raise UnsupportedCapabilityError.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import urlparse

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.support.ui import WebDriverWait

from ..config import EngineConfig
from ..constants import SESSION_PROBE_EXPRESSION
from ..exceptions import UnsupportedCapabilityError
from .engine import EngineAgent, EngineHandle, EnginePage

import logging
logger = logging.getLogger(__name__)


def debugger_address(cdp_url: str) -> str:
    """Turn a DevTools URL such as http://127.0.0.1:9222 into host:port."""
    parsed = urlparse(cdp_url if "//" in cdp_url else f"//{cdp_url}")
    host = parsed.hostname or "127.0.0.1"
    port = parsed.port or 9222
    return f"{host}:{port}"


def create_webdriver(config: EngineConfig) -> webdriver.Remote:
    """
    Build a WebDriver for the configured endpoint.

    Priority: remote WebDriver (SELENIUM_REMOTE_URL) > attach to a debuggable
    Chrome (LOCAL_CDP_URL) > launch a local Chrome.
    """
    options = Options()

    if config.selenium_remote_url:
        if config.headless:
            options.add_argument("--headless=new")
        return webdriver.Remote(command_executor=config.selenium_remote_url, options=options)

    if config.local_cdp_url:
        options.add_experimental_option("debuggerAddress", debugger_address(config.local_cdp_url))
        return webdriver.Chrome(options=options)

    if config.headless:
        options.add_argument("--headless=new")
    return webdriver.Chrome(options=options)


class SeleniumEnginePage(EnginePage):
    def __init__(self, driver):
        self._driver = driver

    async def goto(self, url: str) -> None:
        await asyncio.to_thread(self._driver.get, url)

    async def act(self, action: str, variables: Optional[dict] = None) -> Any:
        raise UnsupportedCapabilityError("selenium", "act")

    async def observe(self, instruction: str) -> Any:
        raise UnsupportedCapabilityError("selenium", "observe")

    async def extract(self, instruction: str, schema: Optional[dict] = None) -> Any:
        raise UnsupportedCapabilityError("selenium", "extract")

    async def evaluate(self, expression: str) -> Any:
        return await asyncio.to_thread(self._driver.execute_script, f"return ({expression})();")

    async def content(self) -> str:
        return await asyncio.to_thread(lambda: self._driver.page_source)

    async def screenshot(self, full_page: bool = False) -> bytes:
        # WebDriver only captures the viewport
        return await asyncio.to_thread(self._driver.get_screenshot_as_png)

    async def wait_for_settle(self, timeout_ms: int) -> None:
        def _wait():
            WebDriverWait(self._driver, timeout_ms / 1000.0).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
        await asyncio.to_thread(_wait)


class SeleniumEngineHandle(EngineHandle):
    engine_name = "selenium"

    def __init__(self, driver):
        self._driver = driver
        self._page = SeleniumEnginePage(driver)

    @classmethod
    async def create(cls, config: EngineConfig) -> "SeleniumEngineHandle":
        driver = await asyncio.to_thread(create_webdriver, config)
        logger.info("WebDriver session started (session=%s)", driver.session_id)
        return cls(driver)

    @property
    def page(self) -> SeleniumEnginePage:
        return self._page

    @property
    def browser(self) -> Any:
        return self._driver

    @property
    def session_id(self) -> Optional[str]:
        return getattr(self._driver, "session_id", None)

    async def probe(self) -> None:
        await self._page.evaluate(SESSION_PROBE_EXPRESSION)

    def agent(self, options: dict) -> EngineAgent:
        raise UnsupportedCapabilityError("selenium", "agent")

    async def close(self) -> None:
        await asyncio.to_thread(self._driver.quit)


__all__ = [
    "debugger_address",
    "create_webdriver",
    "SeleniumEnginePage",
    "SeleniumEngineHandle",
]
