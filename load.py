"""Primary entry point for the Extra Info Bar plugin.

The host client calls the module-level hook functions below: lifecycle hooks
(``plugin_start3``/``plugin_stop``), session hooks (``logged_in``/
``logged_out``), one hook per game packet the plugin cares about, and
``game_loop_update`` once per frame.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Mapping, Optional

if __package__:
    from .version import __version__ as EXTRA_INFO_BAR_VERSION
    from .infobar_plugin.deferred_tasks import Clock, epoch_ms
    from .infobar_plugin.display import InfoBarDisplay
    from .infobar_plugin.host import HostAdapter
    from .infobar_plugin.infobar_api import (
        register_publisher,
        send_indicator_message,
        unregister_publisher,
    )
    from .infobar_plugin.logging_utils import (
        PAYLOAD_LOGGER_NAME,
        attach_payload_log,
        configure_plugin_logger,
        detach_payload_log,
    )
    from .infobar_plugin.preferences import Preferences
    from .infobar_plugin.session import BoostSession
    from .infobar_plugin.version_helper import evaluate_version_status
else:  # pragma: no cover - host loads as top-level module
    from version import __version__ as EXTRA_INFO_BAR_VERSION
    from infobar_plugin.deferred_tasks import Clock, epoch_ms
    from infobar_plugin.display import InfoBarDisplay
    from infobar_plugin.host import HostAdapter
    from infobar_plugin.infobar_api import (
        register_publisher,
        send_indicator_message,
        unregister_publisher,
    )
    from infobar_plugin.logging_utils import (
        PAYLOAD_LOGGER_NAME,
        attach_payload_log,
        configure_plugin_logger,
        detach_payload_log,
    )
    from infobar_plugin.preferences import Preferences
    from infobar_plugin.session import BoostSession
    from infobar_plugin.version_helper import evaluate_version_status

PLUGIN_NAME = "Extra Info Bar"
PLUGIN_AUTHOR = "Valsekamerplant"
PLUGIN_VERSION = EXTRA_INFO_BAR_VERSION
LOGGER_NAME = "HighLite.ExtraInfoBar"
LOG_TAG = "ExtraInfoBar"

LOGGER = configure_plugin_logger(LOGGER_NAME, LOG_TAG)


def _log(message: str) -> None:
    """Log to the host via the Python logging facade."""
    LOGGER.info(message)


class _PluginRuntime:
    """Encapsulates plugin state so host globals stay tidy."""

    def __init__(self, plugin_dir: str, host: HostAdapter, preferences: Preferences, *, clock: Clock = epoch_ms) -> None:
        self.plugin_dir = Path(plugin_dir)
        self.host = host
        self.session: Optional[BoostSession] = None
        self._preferences = preferences
        self._clock = clock
        self._lock = threading.Lock()
        self._running = False
        self._logged_in = False
        self._version_thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def logged_in(self) -> bool:
        return self._logged_in

    # Lifecycle ------------------------------------------------------------

    def start(self) -> str:
        with self._lock:
            if self._running:
                return PLUGIN_NAME
            self._running = True
        register_publisher(self._publish_external)
        self._apply_payload_logging()
        self._start_version_check()
        _log(f"Plugin started (version {PLUGIN_VERSION})")
        if self._logged_in:
            self.handle_logged_in()
        return PLUGIN_NAME

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
        _log("Plugin stopping")
        # Indicators are removed while the publisher is still accepting payloads.
        self._close_session()
        with self._lock:
            self._running = False
        self._logged_in = False
        unregister_publisher()
        detach_payload_log()

    # Host events ----------------------------------------------------------

    def handle_logged_in(self) -> None:
        self._logged_in = True
        if not self._running:
            return
        self._close_session()
        display = InfoBarDisplay(send_indicator_message, sprite_lookup=getattr(self.host, "sprite_position", None))
        self.session = BoostSession(self.host, self._preferences, display, clock=self._clock)
        LOGGER.debug(
            "Boost session opened: restore_cycle_ms=%d debounce_ms=%d",
            self._preferences.restore_cycle_ms,
            self._preferences.level_change_debounce_ms,
        )

    def handle_logged_out(self) -> None:
        self._logged_in = False
        self._close_session()

    def handle_item_action(self, action_code: int, item_id: int, succeeded: bool) -> None:
        if self.session is not None:
            self.session.handle_item_action(action_code, item_id, succeeded)

    def handle_level_change(self, skill_id: int, new_value: int, succeeded: bool) -> None:
        if self.session is not None:
            self.session.handle_level_change(skill_id, new_value, succeeded)

    def handle_stats_restored(self) -> None:
        if self.session is not None:
            self.session.handle_stats_restored()

    def handle_frame(self) -> None:
        session = self.session
        if session is None:
            return
        try:
            session.frame(render=self._preferences.enabled)
        except Exception:
            LOGGER.exception("Info bar update pass failed")

    # Preferences ----------------------------------------------------------

    def set_enabled_preference(self, value: bool) -> None:
        self._preferences.enabled = bool(value)
        self._preferences.save()
        if not self._preferences.enabled and self.session is not None:
            # Tracking continues while hidden; only the indicators go away.
            self.session.display.clear()
        LOGGER.debug("Info bar %s", "enabled" if self._preferences.enabled else "disabled")

    def on_preferences_updated(self) -> None:
        LOGGER.debug(
            "Applying updated preferences: enabled=%s show_ammo=%s timer_format=%s log_payloads=%s "
            "restore_cycle_ms=%d debounce_ms=%d",
            self._preferences.enabled,
            self._preferences.show_ammo,
            self._preferences.timer_format,
            self._preferences.log_payloads,
            self._preferences.restore_cycle_ms,
            self._preferences.level_change_debounce_ms,
        )
        if self.session is not None:
            self.session.apply_preferences(self._preferences)
            if not self._preferences.enabled:
                self.session.display.clear()
        self._apply_payload_logging()

    # Helpers --------------------------------------------------------------

    def _close_session(self) -> None:
        session = self.session
        self.session = None
        if session is not None:
            session.close()

    def _publish_external(self, payload: Mapping[str, Any]) -> bool:
        if not self._running:
            return False
        self._log_payload(payload)
        render = getattr(self.host, "render_indicator", None)
        if render is None:
            return False
        return bool(render(dict(payload)))

    def _log_payload(self, payload: Mapping[str, Any]) -> None:
        if not self._preferences.log_payloads:
            return
        try:
            serialised = json.dumps(payload, ensure_ascii=False, sort_keys=True)
        except (TypeError, ValueError):
            serialised = repr(payload)
        logging.getLogger(PAYLOAD_LOGGER_NAME).info("Indicator payload [%s]: %s", payload.get("op"), serialised)

    def _apply_payload_logging(self) -> None:
        if self._preferences.log_payloads:
            try:
                attach_payload_log(self.plugin_dir, retention=self._preferences.payload_log_retention)
            except OSError as exc:
                LOGGER.warning("Failed to open payload log: %s", exc)
        else:
            detach_payload_log()

    def _start_version_check(self) -> None:
        url = self._preferences.release_api_url
        if not self._preferences.check_for_updates or not url:
            return

        def _worker() -> None:
            status = evaluate_version_status(PLUGIN_VERSION, url)
            if status.error:
                LOGGER.debug("Release check failed: %s", status.error)
            elif status.update_available:
                _log(f"A newer Extra Info Bar release is available: {status.latest_version} (running {PLUGIN_VERSION})")

        thread = threading.Thread(target=_worker, name="ExtraInfoBar-VersionCheck", daemon=True)
        self._version_thread = thread
        thread.start()


# Host hook functions ------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None


def plugin_start3(plugin_dir: str, host: HostAdapter) -> str:
    global _plugin, _preferences
    if _plugin is not None:
        return PLUGIN_NAME
    _log(f"Initialising Extra Info Bar plugin from {plugin_dir}")
    _preferences = Preferences(Path(plugin_dir))
    _plugin = _PluginRuntime(plugin_dir, host, _preferences)
    return _plugin.start()


def plugin_stop() -> None:
    global _plugin, _preferences
    if _plugin:
        try:
            _plugin.stop()
        finally:
            _plugin = None
    _preferences = None


def logged_in(*_args: Any) -> None:
    if _plugin:
        _plugin.handle_logged_in()


def logged_out(*_args: Any) -> None:
    if _plugin:
        _plugin.handle_logged_out()


def inventory_item_action(action_code: int, item_id: int, succeeded: bool, *_extra: Any) -> None:
    if _plugin:
        _plugin.handle_item_action(action_code, item_id, succeeded)


def skill_level_changed(skill_id: int, new_value: int, succeeded: bool) -> None:
    if _plugin:
        _plugin.handle_level_change(skill_id, new_value, succeeded)


def stats_restored(*_args: Any) -> None:
    if _plugin:
        _plugin.handle_stats_restored()


def game_loop_update(*_args: Any) -> None:
    if _plugin:
        _plugin.handle_frame()


def plugin_prefs_save() -> None:
    """Reload preferences written by the host's settings UI and apply them."""
    if _plugin is None or _preferences is None:
        LOGGER.debug("No running plugin to apply preferences to")
        return
    _preferences.reload()
    _plugin.on_preferences_updated()
