"""Checks the published Extra Info Bar release against the running version."""
from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Optional

import requests
from packaging.version import InvalidVersion, Version

_DEFAULT_USER_AGENT = "ExtraInfoBar/version-check"
_TOKEN_SPLIT = re.compile(r"[.\-+_]")


@dataclass(frozen=True)
class VersionStatus:
    """Outcome of an upstream release check."""

    current_version: str
    latest_version: Optional[str]
    is_outdated: bool
    checked_at: float
    error: Optional[str] = None

    @property
    def update_available(self) -> bool:
        return self.is_outdated and self.latest_version is not None


def evaluate_version_status(current_version: str, release_api_url: str, timeout: float = 2.0) -> VersionStatus:
    checked_at = time.time()
    latest_version: Optional[str] = None
    error: Optional[str] = None
    try:
        latest_version = _fetch_latest_release_version(release_api_url, timeout=timeout)
    except RuntimeError as exc:
        error = str(exc)
    is_outdated = False
    if latest_version:
        is_outdated = compare_versions(current_version, latest_version) < 0
    return VersionStatus(
        current_version=current_version,
        latest_version=latest_version,
        is_outdated=is_outdated,
        checked_at=checked_at,
        error=error,
    )


def _fetch_latest_release_version(release_api_url: str, timeout: float = 2.0) -> Optional[str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": _DEFAULT_USER_AGENT,
    }
    with requests.Session() as session:
        try:
            response = session.get(release_api_url, headers=headers, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RuntimeError(f"GitHub request failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise RuntimeError(f"Unable to parse GitHub response: {exc}") from exc
        finally:
            response.close()
    if not isinstance(payload, dict):
        return None
    latest = str(payload.get("tag_name") or payload.get("name") or "").strip()
    return latest.lstrip("vV") or None


def compare_versions(current: str, latest: str) -> int:
    """Return -1, 0 or 1 as ``current`` is older than, equal to or newer than ``latest``."""
    try:
        current_version = Version(current)
        latest_version = Version(latest)
    except InvalidVersion:
        return _fallback_compare(current, latest)
    if current_version < latest_version:
        return -1
    if current_version > latest_version:
        return 1
    return 0


def _fallback_compare(current: str, latest: str) -> int:
    current_tokens = _tokenize(current)
    latest_tokens = _tokenize(latest)
    for cur, lat in zip(current_tokens, latest_tokens):
        if cur == lat:
            continue
        # Numeric tokens outrank string tokens.
        if cur[0] != lat[0]:
            return 1 if cur[0] == "num" else -1
        return -1 if cur[1] < lat[1] else 1
    shorter = min(len(current_tokens), len(latest_tokens))
    current_longer = len(current_tokens) > len(latest_tokens)
    for kind, value in (current_tokens if current_longer else latest_tokens)[shorter:]:
        if kind == "num" and value == 0:
            continue
        # Extra numbers mean a newer release, extra words a pre-release.
        newer = kind == "num"
        return 1 if newer == current_longer else -1
    return 0


def _tokenize(value: str) -> list[tuple[str, object]]:
    tokens: list[tuple[str, object]] = []
    for part in _TOKEN_SPLIT.split(value):
        if not part:
            continue
        if part.isdigit():
            tokens.append(("num", int(part)))
        else:
            tokens.append(("str", part.lower()))
    return tokens
