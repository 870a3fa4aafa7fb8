"""Delivery point for info bar indicator payloads.

The plugin runtime registers a publisher during startup that hands payloads to
the host's rendering surface. Everything else (the display model, tests,
other plugins) only talks to :func:`send_indicator_message`.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, MutableMapping, Optional

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.API")
_MAX_MESSAGE_BYTES = 4_096

_publisher: Optional[Callable[[Mapping[str, Any]], bool]] = None


def register_publisher(publisher: Callable[[Mapping[str, Any]], bool]) -> None:
    global _publisher
    _publisher = publisher


def unregister_publisher() -> None:
    global _publisher
    _publisher = None


def publisher_registered() -> bool:
    return _publisher is not None


def send_indicator_message(message: Mapping[str, Any]) -> bool:
    """Publish an indicator payload to the registered publisher.

    Parameters
    ----------
    message:
        Mapping containing JSON-serialisable values. Must include non-empty
        ``event`` and ``id`` strings. A ``timestamp`` is added when omitted.

    Returns
    -------
    bool
        ``True`` if the publisher accepted the payload, ``False`` otherwise.
    """

    publisher = _publisher
    if publisher is None:
        _log_debug("Indicator publisher unavailable (plugin not running?)")
        return False

    payload = _normalise_message(message)
    if payload is None:
        return False

    try:
        serialised = json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        _log_warning(f"Indicator payload is not JSON serialisable: {exc}")
        return False

    payload_size = len(serialised.encode("utf-8"))
    if payload_size > _MAX_MESSAGE_BYTES:
        _log_warning(
            "Indicator payload exceeds size limit (%d > %d bytes)",
            payload_size,
            _MAX_MESSAGE_BYTES,
        )
        return False

    try:
        return bool(publisher(payload))
    except Exception as exc:
        _log_warning(f"Indicator publisher raised error: {exc}")
        return False


def _normalise_message(message: Mapping[str, Any]) -> Optional[MutableMapping[str, Any]]:
    if not isinstance(message, Mapping):
        _log_warning("Indicator payload must be a mapping/dict")
        return None
    if not message:
        _log_warning("Indicator payload is empty")
        return None

    payload: MutableMapping[str, Any] = dict(message)
    for key in ("event", "id"):
        value = payload.get(key)
        if not isinstance(value, str) or not value:
            _log_warning("Indicator payload requires a non-empty '%s' string", key)
            return None

    if "timestamp" not in payload:
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()

    return payload


def _log_warning(message: str, *args: Any) -> None:
    _emit(logging.WARNING, message, *args)


def _log_debug(message: str, *args: Any) -> None:
    _emit(logging.DEBUG, message, *args)


def _emit(level: int, message: str, *args: Any) -> None:
    try:
        from config import config as host_config  # type: ignore

        logger_obj = getattr(host_config, "logger", None)
        if logger_obj:
            logger_obj.log(level, f"[ExtraInfoBar] {message % args if args else message}")
            return
    except Exception:
        pass
    if args:
        _LOGGER.log(level, message, *args)
    else:
        _LOGGER.log(level, message)
