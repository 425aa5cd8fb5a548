#!/usr/bin/env python3
"""netdash: terminal dashboard for bandwidth, Wi-Fi and VPN connections.

Graphs per-interface throughput from /proc/net/dev and manages Wi-Fi and
VPN connections through NetworkManager's nmcli.

Usage:
    netdash                 # full-screen dashboard
    netdash --poll 5        # poll nmcli every 5 seconds
    netdash --debug         # debug logging to ~/.netdash/netdash.log
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from config import STORAGE, ConfigurationError, get_logger, setup_logging
from app.controller import DashboardController
from app.dependencies import create_dependencies
from app.notifications import DesktopNotifier
from app.timer import PeriodicTimer
from app.tui import DashboardApp
from storage.settings import get_settings_manager

__version__ = "0.3.0"

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netdash",
        description="Terminal dashboard for bandwidth, Wi-Fi and VPN connections.",
    )
    parser.add_argument("--data-dir", type=Path, default=Path.home() / STORAGE.DATA_DIR_NAME,
                        help="settings and log directory (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--tick", type=float, default=None, metavar="SECONDS",
                        help="graph sampling interval")
    parser.add_argument("--poll", type=float, default=None, metavar="SECONDS",
                        help="nmcli polling interval")
    parser.add_argument("--no-notify", action="store_true",
                        help="disable desktop notifications")
    parser.add_argument("--counters-path", default=None, metavar="PATH",
                        help="read interface counters from PATH instead of /proc/net/dev")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)

    # Console logging would corrupt the full-screen display
    setup_logging(data_dir=args.data_dir, debug=args.debug, console_output=False)
    logger.info(f"netdash {__version__} starting...")

    manager = get_settings_manager(args.data_dir)
    try:
        settings = manager.update(tick_seconds=args.tick, poll_seconds=args.poll)
    except ConfigurationError as e:
        print(f"netdash: {e.message}", file=sys.stderr)
        return 2
    if args.no_notify:
        manager.set_notifications_enabled(False)

    deps = create_dependencies(data_dir=args.data_dir, settings=settings,
                               counters_path=args.counters_path)
    controller = DashboardController(deps)

    notifier = DesktopNotifier(deps.bridge, settings.notifications)
    notifier.attach(deps.event_bus)

    timer = PeriodicTimer(lambda _timer: controller.tick(), settings.tick_seconds, name="tick")
    app = DashboardApp(controller, timer)

    def signal_handler(signum, frame):
        """Handle SIGTERM by leaving the input loop."""
        logger.info(f"Received signal {signum}, quitting...")
        app.quit()

    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run()
    except Exception as e:
        logger.critical(f"Application crashed: {e}", exc_info=True)
        raise
    finally:
        deps.event_bus.shutdown()

    logger.info("netdash stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
