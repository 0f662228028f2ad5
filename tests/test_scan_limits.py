"""Environment parsing for scan limits."""

from __future__ import annotations

import pytest

from mcp_secscan.services.scan_limits import (
    DEFAULT_MAX_CODE_BYTES,
    DEFAULT_SCAN_LIMITS,
    DEFAULT_SEMGREP_TIMEOUT_SECONDS,
    MAX_TIMEOUT_SECONDS,
    ScanLimitConfig,
)

ENV_VARS = (
    "SECSCAN_SEMGREP_TIMEOUT_SECONDS",
    "SECSCAN_GITLEAKS_TIMEOUT_SECONDS",
    "SECSCAN_NPM_AUDIT_TIMEOUT_SECONDS",
    "SECSCAN_MAX_TOOL_OUTPUT_BYTES",
    "SECSCAN_MAX_FILE_BYTES",
    "SECSCAN_MAX_CODE_BYTES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    assert ScanLimitConfig.from_env() == DEFAULT_SCAN_LIMITS


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("30", 30),
        ("", DEFAULT_SEMGREP_TIMEOUT_SECONDS),
        ("abc", DEFAULT_SEMGREP_TIMEOUT_SECONDS),
        ("0", DEFAULT_SEMGREP_TIMEOUT_SECONDS),
        ("-5", DEFAULT_SEMGREP_TIMEOUT_SECONDS),
        ("999999", MAX_TIMEOUT_SECONDS),
    ],
)
def test_semgrep_timeout_bounds(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: int
) -> None:
    monkeypatch.setenv("SECSCAN_SEMGREP_TIMEOUT_SECONDS", raw)

    assert ScanLimitConfig.from_env().semgrep_timeout_seconds == expected


def test_code_limit_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECSCAN_MAX_CODE_BYTES", "512")

    limits = ScanLimitConfig.from_env()

    assert limits.max_code_bytes == 512
    assert DEFAULT_SCAN_LIMITS.max_code_bytes == DEFAULT_MAX_CODE_BYTES
