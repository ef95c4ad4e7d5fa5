from __future__ import annotations

import argparse
import curses
import logging
import sys
from dataclasses import replace
from typing import Dict, List, TextIO

from matrix_tui import APP_NAME, __version__
from matrix_tui.app import run
from matrix_tui.config import AppConfig, ConfigError, load_config, parse_values
from matrix_tui.log_setup import setup_logging

logger = logging.getLogger("matrix_tui.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Terminal client for Matrix")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Path to a JSON settings file")
    parser.add_argument("--log-file", default=None, help="Write diagnostics to this file")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Append the underlying cause to backend error messages",
    )
    parser.add_argument("--tick-ms", default=None, help="Milliseconds between ticks")
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config)
    overrides: Dict[str, object] = {}
    if args.log_file is not None:
        overrides["log_file"] = args.log_file
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.verbose:
        overrides["verbose"] = True
    if args.tick_ms is not None:
        overrides["tick_interval_ms"] = args.tick_ms
    labels = {
        "log_file": "--log-file",
        "log_level": "--log-level",
        "verbose": "--verbose",
        "tick_interval_ms": "--tick-ms",
    }
    return replace(config, **parse_values(overrides, labels))


def main(argv: List[str] | None = None, output: TextIO | None = None) -> int:
    """Entry point for the ``matrix-tui`` command."""

    output = output or sys.stderr
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args)
    except ConfigError as exc:
        print(f"{APP_NAME}: {exc}", file=output)
        return 2

    setup_logging(config.log_level, config.log_file)
    logger.info("starting %s %s", APP_NAME, __version__)
    try:
        curses.wrapper(run, config)
    except curses.error as exc:
        logger.exception("terminal failure")
        print(f"{APP_NAME}: terminal error: {exc}", file=output)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
