"""Core entities without I/O for SecScan MCP."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class Severity(Enum):
    """Closed set of severity buckets, ordered most to least urgent."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)
"""Fixed rendering order for reports."""


class ToolAvailability(Enum):
    AVAILABLE = "AVAILABLE"
    NOT_INSTALLED = "NOT_INSTALLED"


class ToolStatus(Enum):
    """Outcome of one external tool invocation."""

    OK = "ok"
    FAILED = "failed"
    NOT_INSTALLED = "not_installed"


@dataclass(frozen=True)
class Finding:
    """One detected line-level issue.

    ``snippet`` is a bounded preview of the offending text; for secret
    findings it is always the masked preview. ``line`` is 1-based and may be
    ``None`` for dependency advisories that have no source location.
    ``reference`` names the OWASP Top 10 entry for pattern findings.
    """

    category: str
    severity: Severity
    file: str
    line: int | None
    snippet: str
    issue: str
    is_secret: bool = False
    source: str = "pattern"
    reference: str | None = None

    def to_mapping(self) -> dict[str, object]:
        return {
            "category": self.category,
            "severity": self.severity.value,
            "file": self.file,
            "line": self.line,
            "snippet": self.snippet,
            "issue": self.issue,
            "source": self.source,
            "reference": self.reference,
        }


@dataclass(frozen=True)
class ToolResult:
    """Fresh, never-persisted outcome of invoking one external tool."""

    tool: str
    availability: ToolAvailability
    findings: tuple[Finding, ...] = ()
    error: str | None = None

    @property
    def status(self) -> ToolStatus:
        if self.availability is ToolAvailability.NOT_INSTALLED:
            return ToolStatus.NOT_INSTALLED
        if self.error is not None:
            return ToolStatus.FAILED
        return ToolStatus.OK

    @classmethod
    def ok(cls, tool: str, findings: tuple[Finding, ...] = ()) -> "ToolResult":
        return cls(tool=tool, availability=ToolAvailability.AVAILABLE, findings=findings)

    @classmethod
    def failed(cls, tool: str, reason: str) -> "ToolResult":
        return cls(tool=tool, availability=ToolAvailability.AVAILABLE, error=reason)

    @classmethod
    def not_installed(cls, tool: str) -> "ToolResult":
        return cls(tool=tool, availability=ToolAvailability.NOT_INSTALLED)


@dataclass(frozen=True)
class DirectoryScan:
    """Walker output: pattern findings and secret findings kept apart."""

    security: tuple[Finding, ...] = ()
    secrets: tuple[Finding, ...] = ()
    files_scanned: int = 0
    skipped: tuple[str, ...] = ()

    @property
    def findings(self) -> tuple[Finding, ...]:
        return self.security + self.secrets


@dataclass(frozen=True)
class ScanReport:
    """Findings bucketed by severity, built once findings are final."""

    by_severity: Mapping[Severity, tuple[Finding, ...]] = field(default_factory=dict)

    @property
    def counts(self) -> dict[Severity, int]:
        return {
            severity: len(self.by_severity.get(severity, ()))
            for severity in SEVERITY_ORDER
        }

    @property
    def total(self) -> int:
        return sum(self.counts.values())
