"""Logging plumbing: the host log bridge and the optional payload log."""
from __future__ import annotations

import importlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

HOST_FALLBACK_LEVEL = logging.INFO
_HOST_LEVEL_ATTRS = ("log_level", "loglevel", "logLevel")
_LEVEL_NAMES = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
}

PAYLOAD_LOGGER_NAME = "HighLite.ExtraInfoBar.Payloads"
PAYLOAD_LOG_DIR = "logs"
PAYLOAD_LOG_FILENAME = "infobar-payloads.log"
PAYLOAD_LOG_MAX_BYTES = 256 * 1024


# Host bridge ----------------------------------------------------------------


def import_host_config() -> Optional[Any]:
    """The host client's ``config`` module, or None outside the client."""
    try:
        return importlib.import_module("config")
    except ImportError:
        return None


def parse_level(raw: Any) -> Optional[int]:
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return None
    token = raw.strip().upper()
    return int(token) if token.isdigit() else _LEVEL_NAMES.get(token)


def host_log_level() -> int:
    """Level set in the host's config, else its logger's, else the root logger's."""
    module = import_host_config()
    host_config = getattr(module, "config", None)
    for attr in _HOST_LEVEL_ATTRS:
        level = parse_level(getattr(host_config, attr, None))
        if level:
            return level
    host_logger = getattr(module, "logger", None)
    if isinstance(host_logger, logging.Logger) and host_logger.getEffectiveLevel():
        return host_logger.getEffectiveLevel()
    return logging.getLogger().getEffectiveLevel() or HOST_FALLBACK_LEVEL


class HostLogHandler(logging.Handler):
    """Hands plugin records to the host's logger, its legacy ``config.log``, or root."""

    def __init__(self, plugin_logger_name: str) -> None:
        super().__init__()
        self._plugin_logger_name = plugin_logger_name

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = host_log_level()
            # The host level can change at runtime; follow it.
            logging.getLogger(self._plugin_logger_name).setLevel(level)
            if record.levelno < level:
                return
            message = self.format(record)
            module = import_host_config()
            host_logger = getattr(module, "logger", None)
            if isinstance(host_logger, logging.Logger) and host_logger.isEnabledFor(record.levelno):
                host_logger.log(record.levelno, message)
                return
            legacy_log = getattr(getattr(module, "config", None), "log", None)
            if callable(legacy_log):
                legacy_log(message)
                return
            root = logging.getLogger()
            if root.isEnabledFor(record.levelno):
                root.log(record.levelno, message)
        except Exception:
            self.handleError(record)


def configure_plugin_logger(name: str, tag: str) -> logging.Logger:
    """Attach the host bridge to ``name`` once; child loggers reach it by propagation."""
    logger = logging.getLogger(name)
    logger.setLevel(host_log_level())
    if not any(getattr(handler, "_host_handler", False) for handler in logger.handlers):
        handler = HostLogHandler(name)
        handler._host_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(logging.Formatter(f"[%(asctime)s] [{tag}] %(message)s", "%H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


# Payload log ----------------------------------------------------------------


def attach_payload_log(plugin_dir: Path, *, retention: int) -> logging.Logger:
    """Route indicator payload records to a rotating file under ``plugin_dir/logs``.

    ``retention`` counts the live file plus its backups.
    """
    logger = logging.getLogger(PAYLOAD_LOGGER_NAME)
    detach_payload_log()
    log_dir = Path(plugin_dir) / PAYLOAD_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / PAYLOAD_LOG_FILENAME,
        maxBytes=PAYLOAD_LOG_MAX_BYTES,
        backupCount=max(0, max(1, retention) - 1),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    handler.setLevel(logging.DEBUG)
    handler._infobar_payload_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger


def detach_payload_log() -> Optional[Path]:
    """Close and remove the payload file handler; returns the file it wrote to."""
    logger = logging.getLogger(PAYLOAD_LOGGER_NAME)
    closed: Optional[Path] = None
    for handler in list(logger.handlers):
        if getattr(handler, "_infobar_payload_handler", False):
            logger.removeHandler(handler)
            handler.close()
            closed = Path(handler.baseFilename)  # type: ignore[attr-defined]
    return closed
