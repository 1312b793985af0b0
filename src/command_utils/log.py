"""Timestamped output + GitHub Actions formatting."""

import logging
import os
import sys
from collections.abc import Callable
from datetime import datetime

LEVELS = ("debug", "info", "warning", "error")

Sink = Callable[[str, str], None]


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _debug_enabled() -> bool:
    return os.environ.get("COMMAND_UTILS_DEBUG", "").lower() in ("1", "true", "yes")


def info(msg: str) -> None:
    print(f"[{_timestamp()}] {msg}", flush=True)


def debug(msg: str) -> None:
    if _debug_enabled():
        print(f"[{_timestamp()}] DEBUG: {msg}", file=sys.stderr, flush=True)


def warning(msg: str) -> None:
    if _is_github_actions():
        print(f"::warning::{msg}", flush=True)
    print(f"[{_timestamp()}] WARNING: {msg}", file=sys.stderr, flush=True)


def error(msg: str) -> None:
    if _is_github_actions():
        print(f"::error::{msg}", flush=True)
    print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)


def header(title: str) -> None:
    line = f"── {title} " + "─" * max(0, 45 - len(title))
    if _is_github_actions():
        print(f"::group::{title}", flush=True)
    info(line)


def footer(title: str) -> None:
    line = f"── {title} " + "─" * max(0, 45 - len(title))
    info(line)
    if _is_github_actions():
        print("::endgroup::", flush=True)


def emit(level: str, msg: str) -> None:
    """Default sink for command output: route msg to the function named by level."""
    handlers = {"debug": debug, "info": info, "warning": warning, "error": error}
    if level not in handlers:
        raise ValueError(f"unknown log level: {level!r}")
    handlers[level](msg)


def logger_sink(logger: logging.Logger) -> Sink:
    """Adapt a stdlib logger to the (level, message) sink."""

    def sink(level: str, msg: str) -> None:
        if level not in LEVELS:
            raise ValueError(f"unknown log level: {level!r}")
        getattr(logger, level)(msg)

    return sink
