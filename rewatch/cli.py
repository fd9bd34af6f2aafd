# rewatch/cli.py

"""
Command line entry point for Rewatch
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .core.display import DisplaySink, InteractiveDisplay, TerminalDisplay
from .exceptions import ConfigurationError, RewatchError
from .utils.config import LOG_FORMATS, WatchConfig, load_config
from .utils.logger import setup_logging
from .watchdog.monitor import Monitor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rewatch",
        description="Watch a directory tree and re-run a command whenever it changes.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None,
                        help="Enable verbose debugging output")
    parser.add_argument("-t", "--terminal", action="store_true", default=None,
                        help="Just print to the terminal (no screen clearing or manual reruns)")
    parser.add_argument("-x", "--exclude", metavar="REGEX",
                        help="Exclude files and directories matching this regular expression")
    parser.add_argument("-p", "--path", help="The path to watch (default: .)")
    parser.add_argument("-d", "--delay", type=float, dest="debounce_time", metavar="SECONDS",
                        help="Quiet period after the last change before re-running (default: 0.2)")
    parser.add_argument("--poll", action="store_true", dest="use_polling", default=None,
                        help="Poll the filesystem instead of using OS notifications")
    parser.add_argument("-c", "--config", metavar="FILE",
                        help="YAML or JSON configuration file")
    parser.add_argument("--log-format", choices=LOG_FORMATS,
                        help="Console log format")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="Command (and arguments) to run on every change")
    return parser


def build_config(args: argparse.Namespace) -> WatchConfig:
    """
    Resolve defaults, then the config file, then command line flags

    Raises:
        ConfigurationError: If the result is not usable
    """
    config = load_config(args.config)

    overrides = {
        key: getattr(args, key)
        for key in ("verbose", "terminal", "exclude", "path", "debounce_time",
                    "use_polling", "log_format", "log_file")
        if getattr(args, key) is not None
    }
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if command:
        overrides["command"] = command

    config.update_from_dict(overrides)

    try:
        os.getcwd()
    except OSError as e:
        raise ConfigurationError(f"Failed to get the current directory: {e}") from e

    config.validate()
    return config


def create_display(config: WatchConfig) -> DisplaySink:
    """Pick the display sink for the configuration"""
    if config.terminal:
        return TerminalDisplay(sys.stdout)
    if sys.stdin is None or getattr(sys.stdin, "closed", False):
        raise ConfigurationError("Interactive display needs stdin; use --terminal")
    return InteractiveDisplay(sys.stdout, sys.stdin)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        setup_logging()
        logger.critical(str(e))
        return 1

    setup_logging(
        log_level=config.effective_log_level,
        log_file=config.log_file,
        log_format=config.log_format,
    )

    try:
        display = create_display(config)
        monitor = Monitor(config, display)
        asyncio.run(monitor.run())
    except KeyboardInterrupt:
        return 130
    except RewatchError as e:
        logger.critical(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
