import argparse
import logging
import sys

from nicegui import app as ng_app
from nicegui import ui

from app.common.logging_config import TRACE, configure_logging
from app.constants import (
    FHEM_TIMEOUT_S,
    FHEM_URL,
    LOG_LEVEL,
    SERVER_HOST,
    SERVER_PORT,
)
from app.pages.console import ConsolePage
from app.services.fhem_client import client

# Inventory and version are fetched before the page is sent
PAGE_RESPONSE_TIMEOUT_S = 2 * FHEM_TIMEOUT_S + 5


@ui.page("/", title="FHEM Console", response_timeout=PAGE_RESPONSE_TIMEOUT_S)
async def index() -> None:
    # A fresh console per load: a reload after restart refetches the device list
    await ConsolePage().build()


ng_app.on_shutdown(client.aclose)


if __name__ in {"__main__", "__mp_main__"}:
    # CLI: web bind, FHEM target, and log level
    parser = argparse.ArgumentParser(description="FHEM NiceGUI Console")
    parser.add_argument("--host", default=SERVER_HOST, help="Webserver bind host")
    parser.add_argument(
        "--port", type=int, default=SERVER_PORT, help="Webserver bind port"
    )
    parser.add_argument(
        "--fhem-url",
        default=FHEM_URL,
        help="FHEM command endpoint, e.g. http://127.0.0.1:8083/fhem",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Enable WARNING logging"
    )
    args, _ = parser.parse_known_args()

    client.base_url = args.fhem_url.rstrip("/")

    # Resolve log level priority: explicit --log-level > -v/-q > env default from constants
    if args.log_level:
        if args.log_level == "TRACE":
            RUNTIME_LOG_LEVEL = TRACE
        else:
            RUNTIME_LOG_LEVEL = getattr(logging, args.log_level)
    elif args.verbose >= 3:
        RUNTIME_LOG_LEVEL = TRACE
    elif args.verbose >= 2:
        RUNTIME_LOG_LEVEL = logging.DEBUG
    elif args.verbose == 1:
        RUNTIME_LOG_LEVEL = logging.INFO
    elif args.quiet:
        RUNTIME_LOG_LEVEL = logging.WARNING
    else:
        RUNTIME_LOG_LEVEL = LOG_LEVEL

    configure_logging(RUNTIME_LOG_LEVEL)
    logging.info(f"Webserver bind: host={args.host} port={args.port}")
    logging.info(f"FHEM target: {client.base_url}")

    ui.run(
        title="FHEM Console",
        host=args.host,
        port=int(args.port),
        reload=False,
        show=False,
        loop="uvloop" if sys.platform != "win32" else "asyncio",
        http="httptools",
        ws="wsproto",
    )
