"""
Shutdown watchdog.

States: RUNNING -> DRAINING -> TERMINATED.

The first trigger (SIGINT, SIGTERM or the transport closing) starts draining:
every connection is closed concurrently while a grace timer runs. Whichever
finishes first wins. If the timer wins, the sessions that were never disposed
are logged and the process is terminated anyway. A drain that hangs is never
awaited past the grace period.
"""

import asyncio
import enum
import logging
import os
import signal
from typing import Callable, Optional

from .constants import SHUTDOWN_GRACE_SECS

logger = logging.getLogger(__name__)


class WatchdogState(enum.Enum):
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


def force_exit(code: int) -> None:
    """Flush logs and leave immediately. Executor threads stuck in a driver call are not joined."""
    logging.shutdown()
    os._exit(code)


class ShutdownWatchdog:
    """
    Coordinates graceful shutdown of a ServerList.

    Args:
        server_list: Connections to drain
        grace_period: Seconds after which termination is forced
        on_terminate: Called once with the exit code on reaching TERMINATED
    """

    def __init__(
        self,
        server_list,
        grace_period: float = SHUTDOWN_GRACE_SECS,
        on_terminate: Optional[Callable[[int], None]] = force_exit,
    ):
        self.server_list = server_list
        self.grace_period = grace_period
        self.on_terminate = on_terminate
        self.state = WatchdogState.RUNNING
        self.exit_code = 0
        self.undisposed = []
        self._terminated = asyncio.Event()
        self._drain: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Route SIGINT and SIGTERM to trigger()."""
        self._loop = loop or asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.trigger, sig.name)
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                signal.signal(sig, self._handle_signal)

    def _handle_signal(self, signum, frame) -> None:
        loop = self._loop
        if loop is None:
            return
        loop.call_soon_threadsafe(self.trigger, signal.Signals(signum).name)

    def trigger(self, reason: str = "shutdown") -> None:
        """Start draining. Later triggers are ignored."""
        if self.state is not WatchdogState.RUNNING:
            logger.debug("Shutdown already in progress, ignoring %s", reason)
            return
        self.state = WatchdogState.DRAINING
        logger.info("Shutting down (%s), grace period %.1fs", reason, self.grace_period)
        self._drain = asyncio.ensure_future(self._run())

    async def wait_terminated(self) -> int:
        await self._terminated.wait()
        return self.exit_code

    async def _run(self) -> None:
        drain = asyncio.ensure_future(self.server_list.close_all())
        done, _ = await asyncio.wait({drain}, timeout=self.grace_period)

        if drain in done:
            if drain.cancelled():
                logger.error("Connection drain was cancelled")
                self.exit_code = 1
            elif drain.exception() is not None:
                logger.error("Error while closing connections: %s", drain.exception())
                self.exit_code = 1
            else:
                logger.info("All connections closed")
        else:
            self.undisposed = self.server_list.held_sessions()
            self.exit_code = 1
            logger.error(
                "Graceful shutdown did not finish within %.1fs; undisposed sessions: %s",
                self.grace_period,
                ", ".join(self.undisposed) or "<none>",
            )

        self.state = WatchdogState.TERMINATED
        self._terminated.set()
        if self.on_terminate is not None:
            self.on_terminate(self.exit_code)


__all__ = ["WatchdogState", "ShutdownWatchdog", "force_exit"]
