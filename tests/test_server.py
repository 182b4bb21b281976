# tests/test_server.py
"""Protocol wiring and the connection registry."""

import asyncio
from functools import partial

import anyio
import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from mcp_stagehand.resources import ScreenshotStore
from mcp_stagehand.server import ServerList, create_server
from mcp_stagehand.tools import TOOLS

from _utils import PNG_BYTES, FakeEngine, make_config

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def engine():
    return FakeEngine()


def call_tool(server, name, arguments=None):
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments or {}),
    )
    return handler(request)


class TestCreateServer:

    def test_list_tools_publishes_catalog(self, event_loop, engine):
        server, _ = create_server(make_config(), handle_factory=engine)
        handler = server.request_handlers[types.ListToolsRequest]

        result = event_loop.run_until_complete(handler(types.ListToolsRequest(method="tools/list")))

        assert [tool.name for tool in result.root.tools] == [tool.name for tool in TOOLS]

    def test_unknown_tool_is_a_protocol_fault(self, event_loop, engine):
        server, context = create_server(make_config(), handle_factory=engine)

        with pytest.raises(McpError) as excinfo:
            event_loop.run_until_complete(call_tool(server, "stagehand_teleport"))

        assert excinfo.value.error.code == types.INVALID_PARAMS
        assert "stagehand_teleport" in excinfo.value.error.message
        assert engine.calls == 0
        assert len(context.sessions) == 0

    def test_tool_failure_is_an_envelope(self, event_loop, engine):
        server, context = create_server(make_config(), handle_factory=engine)
        event_loop.run_until_complete(context.get_active_page())
        engine.handles[0].page.fail_with = RuntimeError("boom")

        result = event_loop.run_until_complete(call_tool(server, "stagehand_navigate", {"url": "https://x.test"}))

        assert result.root.isError is True
        assert "boom" in result.root.content[0].text

    def test_each_server_has_its_own_context(self, engine):
        _, first = create_server(make_config(), handle_factory=engine)
        _, second = create_server(make_config(), handle_factory=engine)

        assert first is not second
        assert first.sessions is not second.sessions

    def test_screenshot_store_can_be_shared(self, engine):
        store = ScreenshotStore()
        _, first = create_server(make_config(), screenshots=store, handle_factory=engine)
        _, second = create_server(make_config(), screenshots=store, handle_factory=engine)

        name = store.add(PNG_BYTES)
        assert second.read_resource(f"screenshot://{name}") == PNG_BYTES
        assert first.screenshots is second.screenshots


def make_server_list(engine):
    return ServerList(partial(create_server, make_config(), handle_factory=engine))


class TestServerList:

    def test_create_and_remove(self, event_loop, engine):
        servers = make_server_list(engine)
        connection = servers.create()
        event_loop.run_until_complete(connection.context.get_active_page())
        assert len(servers) == 1

        event_loop.run_until_complete(servers.remove(connection))

        assert len(servers) == 0
        assert connection.closed is True
        assert engine.handles[0].closed is True
        # Second removal is a no-op
        event_loop.run_until_complete(servers.remove(connection))

    def test_close_all_survives_a_failing_member(self, event_loop, engine):
        servers = make_server_list(engine)
        connections = [servers.create() for _ in range(3)]
        for connection in connections:
            event_loop.run_until_complete(connection.context.get_active_page())

        async def explode():
            raise RuntimeError("transport already gone")

        connections[1].close = explode

        event_loop.run_until_complete(asyncio.wait_for(servers.close_all(), timeout=2))

        assert len(servers) == 0
        assert engine.handles[0].closed is True
        assert engine.handles[2].closed is True

    def test_close_all_on_empty_list(self, event_loop, engine):
        servers = make_server_list(engine)
        event_loop.run_until_complete(servers.close_all())
        assert len(servers) == 0

    def test_connection_close_cancels_transport_task(self, event_loop, engine):
        servers = make_server_list(engine)
        connection = servers.create()

        async def scenario():
            connection.task = asyncio.ensure_future(asyncio.Event().wait())
            await connection.close()
            await asyncio.gather(connection.task, return_exceptions=True)
            return connection.task.cancelled()

        assert event_loop.run_until_complete(scenario()) is True

    def test_held_sessions(self, event_loop, engine):
        servers = make_server_list(engine)
        first = servers.create()
        second = servers.create()
        event_loop.run_until_complete(first.context.get_active_page())
        second.context.set_current_session("research")
        event_loop.run_until_complete(second.context.get_active_page())

        assert servers.held_sessions() == [
            f"{first.connection_id}/default",
            f"{second.connection_id}/research",
        ]

    def test_serve_deregisters_when_the_transport_closes(self, event_loop, engine):
        contexts = []

        def factory():
            server, context = create_server(make_config(), handle_factory=engine)
            contexts.append(context)
            return server, context

        servers = ServerList(factory)

        async def scenario():
            client_send, server_read = anyio.create_memory_object_stream(0)
            server_send, client_read = anyio.create_memory_object_stream(0)
            serving = asyncio.ensure_future(servers.serve(server_read, server_send))
            await asyncio.sleep(0)
            assert len(servers) == 1
            await contexts[0].get_active_page()

            await client_send.aclose()
            await asyncio.wait_for(serving, timeout=2)
            await client_read.aclose()

        event_loop.run_until_complete(scenario())

        assert len(servers) == 0
        assert servers.held_sessions() == []
        assert engine.handles[0].closed is True
        assert contexts[0].sessions.closed is True
