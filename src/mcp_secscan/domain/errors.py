"""Exception hierarchy for the SecScan engine.

Most of these never escape the service layer: the tool runner folds them
into :class:`~mcp_secscan.domain.models.ToolResult` values and the request
boundary turns the rest into sanitized error payloads.
"""

from __future__ import annotations

__all__ = [
    "SecScanError",
    "ToolNotInstalledError",
    "ToolExecutionError",
    "ToolParseError",
    "FileAccessError",
    "UnknownOperationError",
    "PayloadTooLargeError",
]


class SecScanError(Exception):
    """Base exception for all SecScan errors."""


class ToolNotInstalledError(SecScanError):
    """Raised when an external tool binary cannot be located."""


class ToolExecutionError(SecScanError):
    """Raised when a tool times out, crashes, or returns unusable output."""


class ToolParseError(ToolExecutionError):
    """Raised when a tool's structured output cannot be decoded."""


class FileAccessError(SecScanError):
    """Raised when a single file cannot be read during traversal."""


class UnknownOperationError(SecScanError):
    """Raised when a caller asks for an operation the engine does not expose."""


class PayloadTooLargeError(ValueError, SecScanError):
    """Raised when submitted code exceeds the sanctioned size."""
