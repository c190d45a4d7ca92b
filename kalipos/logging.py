"""
Logging for Kalipos.

Everything the project logs lives under the ``kalipos`` logger, including
the Vercel entry point (``api.index`` logs as ``kalipos.api.index``). Levels:

    LOG_LEVEL   level of the kalipos loggers (default INFO)
    VERCEL=1    drop timestamps, the platform adds its own

Third-party clients (httpx, postgrest, aiogram) stay at WARNING so each
Supabase query or bot update does not produce a log line.

Telegram user ids, item names and search text come from users; pass them
through ``sanitize_id_for_logging`` / ``sanitize_string_for_logging``.
"""

import logging
import os
import sys

ROOT_LOGGER = "kalipos"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_VERCEL = "%(levelname)s - %(name)s - %(message)s"

THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "postgrest", "aiogram.event", "aiogram.dispatcher")


def _configure() -> None:
    project = logging.getLogger(ROOT_LOGGER)
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    project.setLevel(getattr(logging, level_name, logging.INFO))

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn and pytest install their own root handlers
    if logging.getLogger().handlers or project.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_VERCEL if os.environ.get("VERCEL") == "1" else LOG_FORMAT))
    project.addHandler(handler)


_configure()


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, placed under the kalipos namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def _escape_control_chars(value: str) -> str:
    # Newlines would let a user forge log lines (CWE-117)
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | int | None) -> str:
    """
    Mask a Telegram user id, cart id or order id down to its last 4 characters.

    Enough to correlate log lines for one user without logging the full id.
    """
    if id_value is None or id_value == "":
        return "N/A"
    safe_value = _escape_control_chars(str(id_value))
    if len(safe_value) <= 4:
        return safe_value
    return "*" + safe_value[-4:]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Escape and truncate free text such as item names and search queries."""
    if not value:
        return "N/A"
    safe_value = _escape_control_chars(str(value))
    if len(safe_value) > max_length:
        return safe_value[:max_length] + "..."
    return safe_value


__all__ = [
    "ROOT_LOGGER",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
