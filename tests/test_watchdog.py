# tests/test_watchdog.py
import asyncio
import time
from functools import partial

import pytest

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


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def servers(engine):
    return ServerList(partial(create_server, make_config(), handle_factory=engine))


def open_sessions(event_loop, servers, count):
    connections = [servers.create() for _ in range(count)]
    for connection in connections:
        event_loop.run_until_complete(connection.context.get_active_page())
    return connections


def test_clean_drain(event_loop, servers, engine):
    open_sessions(event_loop, servers, 2)
    exit_codes = []
    watchdog = ShutdownWatchdog(servers, grace_period=2, on_terminate=exit_codes.append)

    async def scenario():
        watchdog.trigger("SIGTERM")
        assert watchdog.state is WatchdogState.DRAINING
        return await asyncio.wait_for(watchdog.wait_terminated(), timeout=3)

    assert event_loop.run_until_complete(scenario()) == 0
    assert watchdog.state is WatchdogState.TERMINATED
    assert exit_codes == [0]
    assert len(servers) == 0
    assert all(handle.closed for handle in engine.handles)


def test_terminates_within_grace_when_disposal_hangs(event_loop, servers, engine):
    open_sessions(event_loop, servers, 2)
    for handle in engine.handles:
        handle.hang_on_close = True
    exit_codes = []
    watchdog = ShutdownWatchdog(servers, grace_period=0.2, on_terminate=exit_codes.append)

    async def scenario():
        started = time.monotonic()
        watchdog.trigger("SIGINT")
        await asyncio.wait_for(watchdog.wait_terminated(), timeout=2)
        return time.monotonic() - started

    elapsed = event_loop.run_until_complete(scenario())

    assert elapsed < 1.0
    assert watchdog.state is WatchdogState.TERMINATED
    assert exit_codes == [1]
    assert sorted(watchdog.undisposed) == ["1/default", "2/default"]


def test_partial_drain_reports_only_stuck_sessions(event_loop, servers, engine):
    open_sessions(event_loop, servers, 2)
    engine.handles[1].hang_on_close = True
    watchdog = ShutdownWatchdog(servers, grace_period=0.2, on_terminate=None)

    async def scenario():
        watchdog.trigger("stdin closed")
        return await asyncio.wait_for(watchdog.wait_terminated(), timeout=2)

    assert event_loop.run_until_complete(scenario()) == 1
    assert engine.handles[0].closed is True
    assert watchdog.undisposed == ["2/default"]


def test_trigger_is_idempotent(event_loop, servers):
    exit_codes = []
    watchdog = ShutdownWatchdog(servers, grace_period=1, on_terminate=exit_codes.append)

    async def scenario():
        watchdog.trigger("SIGINT")
        watchdog.trigger("SIGTERM")
        watchdog.trigger("stdin closed")
        await asyncio.wait_for(watchdog.wait_terminated(), timeout=2)
        watchdog.trigger("late")

    event_loop.run_until_complete(scenario())

    assert exit_codes == [0]
    assert watchdog.state is WatchdogState.TERMINATED
