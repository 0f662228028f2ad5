"""Configurable limits for tool invocations and tree traversal."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SEMGREP_TIMEOUT_SECONDS = 120
"""Semgrep gets the longest budget; rule downloads happen inside it."""

DEFAULT_GITLEAKS_TIMEOUT_SECONDS = 60

DEFAULT_NPM_AUDIT_TIMEOUT_SECONDS = 30

DEFAULT_MAX_TOOL_OUTPUT_BYTES = 10 * 1024 * 1024
"""Cap on captured stdout per tool invocation."""

DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024
"""Files larger than this are skipped by the directory walker."""

DEFAULT_MAX_CODE_BYTES = 1024 * 1024
"""Cap on raw code submitted directly for scanning."""

MAX_TIMEOUT_SECONDS = 3600


def _env_int(
    name: str,
    default: int,
    *,
    min_value: int = 0,
    max_value: int | None = None,
) -> int:
    """Return a bounded integer limit sourced from the environment."""

    raw = os.getenv(name)
    if not raw or not raw.strip():
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < min_value:
        return default
    if max_value is not None and parsed > max_value:
        return max_value
    return parsed


@dataclass(frozen=True)
class ScanLimitConfig:
    """Container describing every configurable scan limit."""

    semgrep_timeout_seconds: int
    gitleaks_timeout_seconds: int
    npm_audit_timeout_seconds: int
    max_tool_output_bytes: int
    max_file_bytes: int
    max_code_bytes: int

    @classmethod
    def from_env(cls) -> "ScanLimitConfig":
        """Return a limit set using the configured environment variables."""

        return cls(
            semgrep_timeout_seconds=_env_int(
                "SECSCAN_SEMGREP_TIMEOUT_SECONDS",
                DEFAULT_SEMGREP_TIMEOUT_SECONDS,
                min_value=1,
                max_value=MAX_TIMEOUT_SECONDS,
            ),
            gitleaks_timeout_seconds=_env_int(
                "SECSCAN_GITLEAKS_TIMEOUT_SECONDS",
                DEFAULT_GITLEAKS_TIMEOUT_SECONDS,
                min_value=1,
                max_value=MAX_TIMEOUT_SECONDS,
            ),
            npm_audit_timeout_seconds=_env_int(
                "SECSCAN_NPM_AUDIT_TIMEOUT_SECONDS",
                DEFAULT_NPM_AUDIT_TIMEOUT_SECONDS,
                min_value=1,
                max_value=MAX_TIMEOUT_SECONDS,
            ),
            max_tool_output_bytes=_env_int(
                "SECSCAN_MAX_TOOL_OUTPUT_BYTES",
                DEFAULT_MAX_TOOL_OUTPUT_BYTES,
                min_value=1,
            ),
            max_file_bytes=_env_int(
                "SECSCAN_MAX_FILE_BYTES",
                DEFAULT_MAX_FILE_BYTES,
                min_value=1,
            ),
            max_code_bytes=_env_int(
                "SECSCAN_MAX_CODE_BYTES",
                DEFAULT_MAX_CODE_BYTES,
                min_value=1,
            ),
        )


DEFAULT_SCAN_LIMITS = ScanLimitConfig(
    DEFAULT_SEMGREP_TIMEOUT_SECONDS,
    DEFAULT_GITLEAKS_TIMEOUT_SECONDS,
    DEFAULT_NPM_AUDIT_TIMEOUT_SECONDS,
    DEFAULT_MAX_TOOL_OUTPUT_BYTES,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_MAX_CODE_BYTES,
)
