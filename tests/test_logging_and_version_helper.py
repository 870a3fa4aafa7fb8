from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest
import requests

import load
from infobar_plugin import logging_utils, version_helper


def test_plugin_logger_does_not_propagate():
    logger = logging.getLogger(load.LOGGER_NAME)
    assert logger is load.LOGGER
    assert logger.propagate is False
    assert any(getattr(handler, "_host_handler", False) for handler in logger.handlers)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("debug", logging.DEBUG),
        ("TRACE", logging.DEBUG),
        ("30", 30),
        (logging.ERROR, logging.ERROR),
        ("nonsense", None),
        (None, None),
    ],
)
def test_parse_level(raw, expected):
    assert logging_utils.parse_level(raw) == expected


def test_host_log_level_prefers_host_config(monkeypatch):
    module = SimpleNamespace(config=SimpleNamespace(loglevel="DEBUG"), logger=None)
    monkeypatch.setattr(logging_utils, "import_host_config", lambda: module)

    assert logging_utils.host_log_level() == logging.DEBUG


def test_host_handler_routes_to_host_logger_then_legacy_log(monkeypatch):
    messages = []

    class _Capture(logging.Handler):
        def emit(self, record):
            messages.append(record.getMessage())

    host_logger = logging.getLogger("tests.host")
    host_logger.setLevel(logging.DEBUG)
    host_logger.propagate = False
    capture = _Capture()
    host_logger.addHandler(capture)
    legacy = []
    module = SimpleNamespace(config=SimpleNamespace(loglevel="INFO", log=legacy.append), logger=host_logger)
    monkeypatch.setattr(logging_utils, "import_host_config", lambda: module)
    handler = logging_utils.HostLogHandler("tests.plugin")

    try:
        handler.emit(logging.makeLogRecord({"msg": "to host", "levelno": logging.INFO}))
        handler.emit(logging.makeLogRecord({"msg": "too quiet", "levelno": logging.DEBUG}))
        module.logger = None
        handler.emit(logging.makeLogRecord({"msg": "to legacy", "levelno": logging.WARNING}))
    finally:
        host_logger.removeHandler(capture)

    assert messages == ["to host"]
    assert legacy == ["to legacy"]


def test_payload_log_attach_and_detach(tmp_path):
    logger = logging_utils.attach_payload_log(tmp_path, retention=3)
    try:
        handlers = [h for h in logger.handlers if getattr(h, "_infobar_payload_handler", False)]
        assert len(handlers) == 1
        assert handlers[0].backupCount == 2
        logging_utils.attach_payload_log(tmp_path, retention=3)
        assert len([h for h in logger.handlers if getattr(h, "_infobar_payload_handler", False)]) == 1
    finally:
        closed = logging_utils.detach_payload_log()
    assert closed == tmp_path / "logs" / "infobar-payloads.log"
    assert logging_utils.detach_payload_log() is None


@pytest.mark.parametrize(
    "current, latest, expected",
    [
        ("0.4.0", "0.4.0", 0),
        ("0.4.0", "0.5.0", -1),
        ("1.0.0", "0.9.9", 1),
        ("1.0.0-custom", "1.0.0", -1),
        ("1.0.0.1-build", "1.0.0-build", 1),
    ],
)
def test_compare_versions(current, latest, expected):
    assert version_helper.compare_versions(current, latest) == expected


class _Response:
    def __init__(self, payload, status_error=None):
        self._payload = payload
        self._status_error = status_error
        self.closed = False

    def raise_for_status(self):
        if self._status_error is not None:
            raise self._status_error

    def json(self):
        return self._payload

    def close(self):
        self.closed = True


class _Session:
    def __init__(self, response):
        self.response = response
        self.requested = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get(self, url, headers=None, timeout=None):
        self.requested = (url, headers, timeout)
        return self.response


def test_evaluate_version_status_reports_update(monkeypatch):
    session = _Session(_Response({"tag_name": "v0.9.0"}))
    monkeypatch.setattr(version_helper.requests, "Session", lambda: session)

    status = version_helper.evaluate_version_status("0.4.0", "https://example.invalid/releases/latest")

    assert status.latest_version == "0.9.0"
    assert status.update_available is True
    assert session.requested[0] == "https://example.invalid/releases/latest"
    assert session.response.closed is True


def test_evaluate_version_status_captures_http_errors(monkeypatch):
    error = requests.HTTPError("404 Client Error")
    session = _Session(_Response({}, status_error=error))
    monkeypatch.setattr(version_helper.requests, "Session", lambda: session)

    status = version_helper.evaluate_version_status("0.4.0", "https://example.invalid/releases/latest")

    assert status.latest_version is None
    assert status.update_available is False
    assert "GitHub request failed" in (status.error or "")
