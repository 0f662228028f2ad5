"""JSONL audit trail for scan events.

Scan events (fallbacks, tool failures, skipped files) are written here by
:func:`record_scan_event`. An in-memory copy of recent events is kept only
while :func:`capture_scan_events` has been enabled, and it is bounded.

Events are appended one JSON object per line. When the file grows past the
configured size it is rotated to ``audit.jsonl.1`` (a single generation).
Disk problems are logged, rate limited per failure kind, and never raised.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[3]
STATE_DIR = PROJECT_ROOT / "state"
AUDIT_FILENAME = "audit.jsonl"

_LOG = logging.getLogger(__name__)
DEFAULT_MAX_AUDIT_BYTES = 1_000_000
STATE_DIR_ENV = "SECSCAN_STATE_DIR"
AUDIT_MAX_BYTES_ENV = "SECSCAN_AUDIT_MAX_BYTES"

TOOL_NOT_INSTALLED_FALLBACK = "TOOL_NOT_INSTALLED_FALLBACK"
TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
FILE_SKIPPED = "FILE_SKIPPED"

DEFAULT_RECENT_EVENT_LIMIT = 1000


@dataclass(frozen=True)
class AuditConfig:
    """Where audit events go and when the file rotates."""

    audit_file: Path
    max_bytes: int | None

    @classmethod
    def from_env(cls) -> "AuditConfig":
        base_dir = Path(os.getenv(STATE_DIR_ENV, str(STATE_DIR)))
        return cls(
            audit_file=base_dir / AUDIT_FILENAME,
            max_bytes=_parse_max_bytes(os.getenv(AUDIT_MAX_BYTES_ENV)),
        )


def _parse_max_bytes(raw: str | None) -> int | None:
    """Zero or negative disables rotation; junk falls back to the default."""

    if not raw or not raw.strip():
        return DEFAULT_MAX_AUDIT_BYTES
    try:
        parsed = int(raw)
    except ValueError:
        return DEFAULT_MAX_AUDIT_BYTES
    return parsed if parsed > 0 else None


class _WarningLimiter:
    """Allow one warning per failure kind per interval."""

    def __init__(self, interval_seconds: float) -> None:
        self.interval_seconds = interval_seconds
        self._last: dict[str, float] = {}

    def allow(self, kind: str) -> bool:
        if self.interval_seconds <= 0:
            return True
        now = time.monotonic()
        last = self._last.get(kind)
        if last is not None and now - last < self.interval_seconds:
            return False
        self._last[kind] = now
        return True

    def reset(self) -> None:
        self._last.clear()


_LIMITER = _WarningLimiter(60.0)
_OVERRIDE: AuditConfig | None = None
_PERSIST_EVENTS = True
_RECENT_EVENTS: deque[dict[str, object]] | None = None


def set_audit_config(config: AuditConfig | None) -> None:
    """Pin the audit config (``None`` returns to environment defaults)."""

    global _OVERRIDE
    _OVERRIDE = config


def reset_audit_config() -> None:
    set_audit_config(None)


def current_audit_config() -> AuditConfig:
    return _OVERRIDE if _OVERRIDE is not None else AuditConfig.from_env()


def set_audit_warning_interval(seconds: float | None) -> None:
    """Adjust the warning rate limit; ``None`` disables limiting."""

    _LIMITER.interval_seconds = 0.0 if seconds is None else max(seconds, 0.0)


def reset_audit_warning_state() -> None:
    _LIMITER.reset()


def _warn(kind: str, message: str, *args: object) -> None:
    if _LIMITER.allow(kind):
        _LOG.warning(message, *args)


def append_audit_event(event: dict[str, object]) -> None:
    """Append ``event`` (plus a UTC timestamp) to the audit log."""

    config = current_audit_config()
    try:
        config.audit_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        _warn("mkdir", "Unable to create audit directory %s: %s", config.audit_file.parent, exc)
        return

    _rotate_if_needed(config)

    record = {"recorded_at": datetime.now(timezone.utc).isoformat(), **event}
    try:
        with config.audit_file.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError as exc:
        _warn("write", "Unable to write audit event to %s: %s", config.audit_file, exc)


def read_audit_events(limit: int | None = None) -> list[dict[str, object]]:
    """Return the newest-last events from the current audit file."""

    path = current_audit_config().audit_file
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except OSError as exc:
        _warn("read", "Unable to read audit log %s: %s", path, exc)
        return []

    events: list[dict[str, object]] = []
    for line in lines:
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    if limit is not None:
        events = events[-limit:] if limit > 0 else []
    return events


def _rotate_if_needed(config: AuditConfig) -> None:
    if config.max_bytes is None:
        return

    path = config.audit_file
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        return
    except OSError as exc:
        _warn("stat", "Unable to stat audit log %s: %s", path, exc)
        return

    if size < config.max_bytes:
        return

    backup = path.with_name(path.name + ".1")
    try:
        path.replace(backup)
    except OSError as exc:
        _warn("rotate", "Unable to rotate audit log %s: %s", path, exc)


def set_event_persistence(enabled: bool) -> None:
    """Turn writing scan events to the audit file on or off."""

    global _PERSIST_EVENTS
    _PERSIST_EVENTS = enabled


def capture_scan_events(limit: int | None = DEFAULT_RECENT_EVENT_LIMIT) -> None:
    """Keep the most recent ``limit`` scan events in memory (``None`` stops)."""

    global _RECENT_EVENTS
    _RECENT_EVENTS = None if limit is None else deque(maxlen=max(limit, 1))


def get_scan_events() -> list[dict[str, object]]:
    """Return captured scan events, oldest first."""

    return list(_RECENT_EVENTS) if _RECENT_EVENTS is not None else []


def clear_scan_events() -> None:
    if _RECENT_EVENTS is not None:
        _RECENT_EVENTS.clear()


def record_scan_event(event: str, tool: str | None = None, **counts: object) -> None:
    """Record a non-sensitive scan event.

    Only tool names, reason codes and counts belong here: never snippets,
    paths outside the scan root, or secret material.
    """

    entry: dict[str, object] = {"event": event}
    if tool is not None:
        entry["tool"] = tool
    entry.update(counts)
    if _RECENT_EVENTS is not None:
        _RECENT_EVENTS.append(dict(entry))
    if _PERSIST_EVENTS:
        append_audit_event(entry)
