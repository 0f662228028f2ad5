"""Shared fixtures keeping scan audit events out of the real state dir."""

from __future__ import annotations

from typing import Iterator

import pytest

from mcp_secscan.services.audit_log import capture_scan_events, set_event_persistence


@pytest.fixture(autouse=True)
def isolated_scan_audit() -> Iterator[None]:
    """Stop persisting scan events and capture them in memory instead."""

    set_event_persistence(False)
    capture_scan_events()
    yield
    capture_scan_events(None)
    set_event_persistence(True)
