#region Imports
import argparse
import asyncio
import dataclasses
import logging
import os
import sys
import tempfile
from functools import partial
#endregion

#region Import from your package
from mcp_stagehand.config import ENGINES, EngineConfig, get_env_config
from mcp_stagehand.constants import DEFAULT_HOST, DEFAULT_PORT, SHUTDOWN_GRACE_SECS
from mcp_stagehand.resources import ScreenshotStore
from mcp_stagehand.server import ServerList, create_server
from mcp_stagehand.transport import run_sse, run_stdio
from mcp_stagehand.watchdog import ShutdownWatchdog
#endregion

#region Logger
logger = logging.getLogger(__name__)
#endregion

LOG_FILE = os.path.join(tempfile.gettempdir(), "mcp_stagehand.log")


def configure_logging(level: str) -> None:
    """Log to stderr and a temp file. stdout carries the stdio protocol."""
    handlers = [logging.StreamHandler(sys.stderr)]
    try:
        handlers.append(logging.FileHandler(LOG_FILE))
    except OSError as e:
        sys.stderr.write(f"Could not open log file {LOG_FILE}: {e}\n")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-stagehand",
        description="MCP server exposing Stagehand/Selenium browser automation.",
    )
    parser.add_argument("--transport", choices=("stdio", "sse"), default="stdio")
    parser.add_argument("--host", default=DEFAULT_HOST, help="SSE bind address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="SSE port")
    parser.add_argument("--engine", choices=ENGINES, default=None, help="Overrides STAGEHAND_ENGINE")
    parser.add_argument("--headless", action="store_true", default=None, help="Run a locally launched browser headless")
    parser.add_argument("--grace-period", type=float, default=SHUTDOWN_GRACE_SECS, help="Shutdown grace ceiling in seconds")
    parser.add_argument(
        "--log-level",
        default=os.getenv("MCP_LOG_LEVEL", "INFO"),
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
    )
    return parser


def load_config(args: argparse.Namespace) -> EngineConfig:
    """Environment configuration with command line overrides applied."""
    config = get_env_config()
    overrides = {}
    if args.engine:
        overrides["engine"] = args.engine
    if args.headless is not None:
        overrides["headless"] = args.headless
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


async def serve(args: argparse.Namespace, config: EngineConfig) -> int:
    logger.info("Engine configuration: %s", config.redacted())

    # Screenshots are readable from every connection of this process
    screenshots = ScreenshotStore()
    server_list = ServerList(partial(create_server, config, screenshots=screenshots))
    watchdog = ShutdownWatchdog(server_list, grace_period=args.grace_period)

    if args.transport == "sse":
        return await run_sse(server_list, watchdog, args.host, args.port, args.log_level)
    return await run_stdio(server_list, watchdog)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        config = load_config(args)
    except EnvironmentError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    return asyncio.run(serve(args, config))


if __name__ == "__main__":
    sys.exit(main())
