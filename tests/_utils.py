# tests/_utils.py
"""Fake engine handles standing in for a real remote browser."""

import asyncio

from mcp_stagehand.browser import EngineAgent, EngineHandle, EnginePage
from mcp_stagehand.config import EngineConfig
from mcp_stagehand.constants import SESSION_PROBE_EXPRESSION
from mcp_stagehand.context import SNAPSHOT_EXPRESSION

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"

DEAD_SESSION_MESSAGE = "Target page, context or browser has been closed"


def make_config(**overrides) -> EngineConfig:
    values = {"engine": "stagehand", "local_cdp_url": "http://127.0.0.1:9222"}
    values.update(overrides)
    return EngineConfig(**values)


class FakePage(EnginePage):
    def __init__(self, handle):
        self.handle = handle
        self.url = "about:blank"
        self.title = "Blank"
        self.html = "<html><body><p>Hello</p></body></html>"
        self.calls = []
        self.fail_with = None
        self.settle_error = None

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_with is not None:
            raise self.fail_with

    async def goto(self, url):
        self._record("goto", url)
        self.url = url

    async def act(self, action, variables=None):
        self._record("act", action, variables)
        return {"success": True, "message": f"did {action}"}

    async def observe(self, instruction):
        self._record("observe", instruction)
        return [{"selector": "#login", "description": "Login button"}]

    async def extract(self, instruction, schema=None):
        self._record("extract", instruction, schema)
        return {"title": self.title}

    async def evaluate(self, expression):
        if self.handle.dead:
            raise RuntimeError(DEAD_SESSION_MESSAGE)
        if self.handle.probe_error is not None:
            raise self.handle.probe_error
        if expression == SNAPSHOT_EXPRESSION:
            return {"url": self.url, "title": self.title}
        if expression == SESSION_PROBE_EXPRESSION:
            return self.title
        return None

    async def content(self):
        self._record("content")
        return self.html

    async def screenshot(self, full_page=False):
        self._record("screenshot", full_page)
        return PNG_BYTES

    async def wait_for_settle(self, timeout_ms):
        self.calls.append(("wait_for_settle", timeout_ms))
        if self.settle_error is not None:
            raise self.settle_error


class FakeAgent(EngineAgent):
    def __init__(self, options):
        self.options = options
        self.executed = []

    async def execute(self, instruction, max_steps=None):
        self.executed.append((instruction, max_steps))
        return {"completed": True, "message": "done"}


class FakeHandle(EngineHandle):
    engine_name = "fake"

    def __init__(self, number, live_view_url=None):
        self.number = number
        self.dead = False
        self.probe_error = None
        self.close_error = None
        self.hang_on_close = False
        self.closed = False
        self.agents = []
        self._live_view_url = live_view_url
        self._page = FakePage(self)
        self._browser = object()

    def __repr__(self):
        return f"<FakeHandle #{self.number}>"

    @property
    def page(self):
        return self._page

    @property
    def browser(self):
        return self._browser

    @property
    def session_id(self):
        return f"fake-{self.number}"

    @property
    def live_view_url(self):
        return self._live_view_url

    async def probe(self):
        await self._page.evaluate(SESSION_PROBE_EXPRESSION)

    def agent(self, options):
        agent = FakeAgent(options)
        self.agents.append(agent)
        return agent

    async def close(self):
        if self.hang_on_close:
            await asyncio.Event().wait()
        if self.close_error is not None:
            raise self.close_error
        self.closed = True


class FakeEngine:
    """Handle factory recording every handle it creates."""

    def __init__(self, fail_with=None, live_view_url=None, gate=None):
        self.fail_with = fail_with
        self.live_view_url = live_view_url
        # asyncio.Event that creation waits on before returning a handle
        self.gate = gate
        self.handles = []
        self.configs = []

    @property
    def calls(self):
        return len(self.configs)

    async def __call__(self, config):
        self.configs.append(config)
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        handle = FakeHandle(len(self.handles) + 1, live_view_url=self.live_view_url)
        self.handles.append(handle)
        return handle
