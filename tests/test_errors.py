"""Exception hierarchy contracts."""

from __future__ import annotations

import pytest

from mcp_secscan.domain.errors import (
    FileAccessError,
    PayloadTooLargeError,
    SecScanError,
    ToolExecutionError,
    ToolNotInstalledError,
    ToolParseError,
    UnknownOperationError,
)


@pytest.mark.parametrize(
    "error_type",
    [
        ToolNotInstalledError,
        ToolExecutionError,
        ToolParseError,
        FileAccessError,
        UnknownOperationError,
        PayloadTooLargeError,
    ],
)
def test_every_error_is_a_secscan_error(error_type: type[Exception]) -> None:
    assert issubclass(error_type, SecScanError)


def test_parse_errors_are_execution_errors() -> None:
    assert issubclass(ToolParseError, ToolExecutionError)


def test_payload_too_large_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        raise PayloadTooLargeError("too big")
