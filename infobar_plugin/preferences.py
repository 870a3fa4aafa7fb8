"""JSON-backed preferences for the Extra Info Bar plugin."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .correlator import DEFAULT_DEBOUNCE_MS
from .display import TIMER_FORMATS
from .restore_cycle import DEFAULT_RESTORE_CYCLE_MS

PREFERENCES_FILE = "infobar_settings.json"
MIN_RESTORE_CYCLE_MS = 1_000
MIN_DEBOUNCE_MS = 10
MAX_DEBOUNCE_MS = 1_000


@dataclass
class Preferences:
    """Simple JSON-backed preferences store."""

    plugin_dir: Path
    enabled: bool = True
    restore_cycle_ms: int = DEFAULT_RESTORE_CYCLE_MS
    level_change_debounce_ms: int = DEFAULT_DEBOUNCE_MS
    show_ammo: bool = True
    timer_format: str = "seconds"
    log_payloads: bool = False
    payload_log_retention: int = 5
    check_for_updates: bool = True
    release_api_url: str = ""

    def __post_init__(self) -> None:
        self.plugin_dir = Path(self.plugin_dir)
        self._path = self.plugin_dir / PREFERENCES_FILE
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # Persistence ---------------------------------------------------------

    def reload(self) -> None:
        self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except json.JSONDecodeError:
            return
        if not isinstance(data, dict):
            return
        self.enabled = bool(data.get("enabled", True))
        try:
            cycle = int(data.get("restore_cycle_ms", DEFAULT_RESTORE_CYCLE_MS))
        except (TypeError, ValueError):
            cycle = DEFAULT_RESTORE_CYCLE_MS
        self.restore_cycle_ms = max(MIN_RESTORE_CYCLE_MS, cycle)
        try:
            debounce = int(data.get("level_change_debounce_ms", DEFAULT_DEBOUNCE_MS))
        except (TypeError, ValueError):
            debounce = DEFAULT_DEBOUNCE_MS
        self.level_change_debounce_ms = max(MIN_DEBOUNCE_MS, min(debounce, MAX_DEBOUNCE_MS))
        self.show_ammo = bool(data.get("show_ammo", True))
        timer_format = str(data.get("timer_format", "seconds") or "seconds").strip().lower()
        self.timer_format = timer_format if timer_format in TIMER_FORMATS else "seconds"
        self.log_payloads = bool(data.get("log_payloads", False))
        try:
            retention = int(data.get("payload_log_retention", 5))
        except (TypeError, ValueError):
            retention = 5
        self.payload_log_retention = max(1, retention)
        self.check_for_updates = bool(data.get("check_for_updates", True))
        self.release_api_url = str(data.get("release_api_url") or "").strip()

    def save(self) -> None:
        payload: Dict[str, Any] = {
            "enabled": bool(self.enabled),
            "restore_cycle_ms": int(self.restore_cycle_ms),
            "level_change_debounce_ms": int(self.level_change_debounce_ms),
            "show_ammo": bool(self.show_ammo),
            "timer_format": str(self.timer_format or "seconds"),
            "log_payloads": bool(self.log_payloads),
            "payload_log_retention": int(self.payload_log_retention),
            "check_for_updates": bool(self.check_for_updates),
            "release_api_url": str(self.release_api_url or ""),
        }
        self.plugin_dir.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
