"""Reason codes carried by error responses at the tool boundary."""

from __future__ import annotations

INVALID_INPUT = "invalid_input"
"""Arguments failed schema validation or format checks."""

UNKNOWN_TOOL = "unknown_tool"
"""The caller asked for an operation this server does not expose."""

PAYLOAD_TOO_LARGE = "payload_too_large"
"""Submitted code exceeded the sanctioned size bound."""

PATH_NOT_FOUND = "path_not_found"
"""The requested scan target does not exist or is the wrong kind of path."""

TOOL_EXECUTION_FAILED = "tool_execution_failed"
"""An external tool timed out, crashed, or produced unusable output."""

RESPONSE_VALIDATION_FAILED = "response_validation_failed"
"""The service produced output that violated the response schema."""

INTERNAL_ERROR = "internal_error"
"""An unexpected failure confined to this single request."""
