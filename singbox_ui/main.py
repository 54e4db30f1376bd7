#!/usr/bin/env python3
"""
Main entry point for the sing-box UI client.

Without a command the client runs as a headless monitor: it mirrors the
manager's status, connections, logs and traffic and logs what it sees
until interrupted. The ``status``, ``start``, ``stop`` and ``restart``
commands perform a single action and exit.
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from singbox_ui import __version__
from singbox_ui.api.channel import Resource
from singbox_ui.config.client_settings import ClientSettings
from singbox_ui.config.settings_manager import SettingsManager
from singbox_ui.error_handling.error_manager import ErrorInfo
from singbox_ui.runtime.client_runtime import ClientRuntime
from singbox_ui.state.connection_view import format_rate
from singbox_ui.state.store import StoreField

COMMANDS = ('monitor', 'status', 'start', 'stop', 'restart')
SUMMARY_INTERVAL = 10.0

_shutdown_event = threading.Event()


def setup_logging(log_level: str = "INFO"):
    """Set up application logging."""
    log_dir = Path.home() / ".singbox-ui-client" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / 'singbox_ui.log')
        ]
    )


def signal_handler(signum, frame):
    """Handle interrupt signals gracefully."""
    logger = logging.getLogger(__name__)
    logger.info(f"Received signal {signum}, shutting down gracefully...")
    _shutdown_event.set()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='singbox-ui',
        description='Control client for a sing-box manager service'
    )
    parser.add_argument('command', nargs='?', default='monitor', choices=COMMANDS,
                        help='Action to perform (default: monitor)')
    parser.add_argument('--base-url', help='Manager API root, e.g. http://127.0.0.1:8080/api')
    parser.add_argument('--log-level', help='Logging level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--config-dir', help='Directory holding singbox_ui_config.json')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> ClientSettings:
    """Settings file, then environment, then command line."""
    settings = SettingsManager(args.config_dir).load_settings()

    overrides = {}
    if args.base_url:
        overrides['base_url'] = args.base_url
    if args.log_level:
        overrides['log_level'] = args.log_level
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    return settings


def run_command(runtime: ClientRuntime, command: str) -> int:
    """Perform a one-shot command. Returns the process exit code."""
    logger = logging.getLogger(__name__)

    if command == 'status':
        result = runtime.channel.fetch_once(Resource.STATUS)
        if not result.ok:
            logger.error(f"Cannot reach manager: {result.error}")
            return 1
        logger.info(f"Status: {result.value.get_status_text()}")
        return 0

    actions = {
        'start': runtime.service.start,
        'stop': runtime.service.stop,
        'restart': runtime.service.restart,
    }
    return 0 if actions[command]() else 1


def run_monitor(runtime: ClientRuntime):
    """Mirror the manager until a shutdown signal arrives."""
    logger = logging.getLogger(__name__)

    def on_log(entry):
        logger.info(f"[{entry.get_level_label()}] {entry.message}")

    runtime.store.add_listener(StoreField.LOGS, on_log)
    runtime.start()

    if runtime.proxy_groups.refresh():
        logger.info(f"Nodes: {runtime.proxy_groups.node_count}")
        for group in runtime.proxy_groups.get_groups():
            logger.info(f"Group {group.name} ({group.type.value}): {group.active or '-'}")

    while not _shutdown_event.wait(SUMMARY_INTERVAL):
        traffic = runtime.store.traffic
        logger.info(
            f"Up {format_rate(traffic.up)}, down {format_rate(traffic.down)}, "
            f"{len(runtime.store.connections)} connections"
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ValueError as e:
        sys.stderr.write(f"Invalid settings: {e}\n")
        return 2
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    # Set up signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, 'SIGTERM'):
        signal.signal(signal.SIGTERM, signal_handler)

    logger.info(f"Starting sing-box UI client {__version__}")
    logger.info(f"Manager API: {settings.base_url}")

    runtime = None
    try:
        runtime = ClientRuntime(settings)
        runtime.error_manager.add_error_callback(_notify)

        if args.command == 'monitor':
            run_monitor(runtime)
            return 0
        return run_command(runtime, args.command)

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Client failed: {e}")
        import traceback
        logger.error(f"Traceback: {traceback.format_exc()}")
        return 1

    finally:
        if runtime:
            try:
                runtime.stop()
            except Exception as e:
                logger.error(f"Error during runtime shutdown: {e}")
        logger.info("sing-box UI client shutdown complete")


def _notify(error: ErrorInfo):
    # Stand-in for the UI's transient notification; ErrorManager has already logged it
    logging.getLogger(__name__).debug(f"Notification: {error.message}")


if __name__ == "__main__":
    sys.exit(main())
