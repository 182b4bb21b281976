# tests/test_transport.py
"""stdio transport: stdin closing drains every connection."""

import asyncio
import contextlib

import anyio
import pytest

from mcp_stagehand import transport
from mcp_stagehand.server import ServerList, create_server
from mcp_stagehand.watchdog import ShutdownWatchdog, WatchdogState

from _utils import FakeEngine, make_config

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def test_stdin_closing_triggers_the_watchdog(event_loop, monkeypatch):
    engine = FakeEngine()
    contexts = []

    def factory():
        server, context = create_server(make_config(), handle_factory=engine)
        contexts.append(context)
        return server, context

    servers = ServerList(factory)
    exit_codes = []
    watchdog = ShutdownWatchdog(servers, grace_period=2, on_terminate=exit_codes.append)
    monkeypatch.setattr(watchdog, "install", lambda loop=None: None)

    @contextlib.asynccontextmanager
    async def stdio_server():
        client_send, server_read = anyio.create_memory_object_stream(0)
        server_send, client_read = anyio.create_memory_object_stream(0)

        async def client():
            # One tool call's worth of state, then stdin reaches EOF
            await contexts[0].get_active_page()
            await client_send.aclose()

        talking = asyncio.ensure_future(client())
        try:
            yield server_read, server_send
        finally:
            await talking
            await client_read.aclose()

    monkeypatch.setattr(transport, "stdio_server", stdio_server)

    code = event_loop.run_until_complete(
        asyncio.wait_for(transport.run_stdio(servers, watchdog), timeout=3)
    )

    assert code == 0
    assert exit_codes == [0]
    assert watchdog.state is WatchdogState.TERMINATED
    assert len(servers) == 0
    assert engine.handles[0].closed is True
