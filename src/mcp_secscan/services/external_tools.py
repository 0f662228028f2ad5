"""Semgrep, Gitleaks and npm audit wrappers built on :mod:`tool_runner`.

The command lines below are what the wrapped tools expect; keep them stable.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..domain.errors import ToolExecutionError
from ..domain.models import Finding, ToolResult
from .line_matcher import MAX_SNIPPET_CHARS
from .patterns import SECRET_SEVERITY
from .sanitizer import REDACTION_MARKER, redact_value
from .scan_limits import ScanLimitConfig
from .tool_runner import (
    ToolSpec,
    check_available,
    invoke,
    normalize_severity,
    relative_to_root,
)

_LOG = logging.getLogger(__name__)

SEMGREP = "semgrep"
GITLEAKS = "gitleaks"
NPM_AUDIT = "npm-audit"

DEFAULT_SEMGREP_CONFIG = "auto"

INSTALL_HINTS = {
    SEMGREP: "Semgrep not installed. Run: brew install semgrep",
    GITLEAKS: "Gitleaks not installed. Run: brew install gitleaks",
    NPM_AUDIT: "npm not installed. Install Node.js to enable npm audit",
}


def normalize_semgrep(report: Mapping[str, Any], target: str) -> tuple[Finding, ...]:
    """Map ``semgrep --json`` results into findings."""

    errors = report.get("errors") or []
    if errors:
        _LOG.warning("semgrep reported %d rule/parse errors", len(errors))

    findings: list[Finding] = []
    for result in report.get("results") or []:
        extra = result.get("extra") or {}
        check_id = result.get("check_id") or "unknown"
        snippet = str(extra.get("lines") or "").strip()
        findings.append(
            Finding(
                category=check_id,
                severity=normalize_severity(extra.get("severity", "WARNING")),
                file=relative_to_root(result.get("path") or "", target),
                line=(result.get("start") or {}).get("line"),
                snippet=snippet[:MAX_SNIPPET_CHARS],
                issue=extra.get("message") or check_id,
                source=SEMGREP,
            )
        )
    return tuple(findings)


def normalize_gitleaks(report: Any, target: str) -> tuple[Finding, ...]:
    """Map a Gitleaks JSON report (a list of leaks) into secret findings."""

    if not isinstance(report, list):
        raise TypeError("expected a list of leaks")

    findings: list[Finding] = []
    for leak in report:
        secret = leak.get("Secret") or ""
        rule_id = leak.get("RuleID") or "unknown"
        findings.append(
            Finding(
                category=rule_id,
                severity=SECRET_SEVERITY,
                file=relative_to_root(leak.get("File") or "", target),
                line=leak.get("StartLine"),
                snippet=redact_value(secret) if secret else REDACTION_MARKER,
                issue=leak.get("Description") or rule_id,
                is_secret=True,
                source=GITLEAKS,
            )
        )
    return tuple(findings)


def _advisory_title(via: Any) -> str:
    if not via:
        return "Unknown"
    first = via[0]
    if isinstance(first, Mapping):
        return str(first.get("title") or "Unknown")
    return f"Vulnerable through {first}"


def normalize_npm_audit(report: Mapping[str, Any], target: str) -> tuple[Finding, ...]:
    """Map ``npm audit --json`` (lockfile v2+) advisories into findings."""

    error = report.get("error")
    if error:
        summary = error.get("summary") if isinstance(error, Mapping) else str(error)
        raise ToolExecutionError(summary or "npm audit reported an error")

    findings: list[Finding] = []
    for name, advisory in sorted((report.get("vulnerabilities") or {}).items()):
        fix = "fix available" if advisory.get("fixAvailable") else "no fix available"
        findings.append(
            Finding(
                category=advisory.get("name") or name,
                severity=normalize_severity(advisory.get("severity")),
                file="package.json",
                line=None,
                snippet=f"{advisory.get('range') or '*'} ({fix})"[:MAX_SNIPPET_CHARS],
                issue=_advisory_title(advisory.get("via")),
                source=NPM_AUDIT,
            )
        )
    return tuple(findings)


SEMGREP_SPEC = ToolSpec(name=SEMGREP, binary="semgrep", normalize=normalize_semgrep)
GITLEAKS_SPEC = ToolSpec(
    name=GITLEAKS,
    binary="gitleaks",
    normalize=normalize_gitleaks,
    empty_output_is_clean=True,
)
NPM_AUDIT_SPEC = ToolSpec(name=NPM_AUDIT, binary="npm", normalize=normalize_npm_audit)

TOOL_SPECS: dict[str, ToolSpec] = {
    SEMGREP: SEMGREP_SPEC,
    GITLEAKS: GITLEAKS_SPEC,
    NPM_AUDIT: NPM_AUDIT_SPEC,
}
"""Registry of wrapped tools keyed by public tool name."""


def semgrep_command(target: str, config: str = DEFAULT_SEMGREP_CONFIG) -> list[str]:
    return ["--config", config, "--json", "--quiet", target]


def gitleaks_command(target: str) -> list[str]:
    return ["detect", "--source", target, "--report-format", "json", "--no-git", "--quiet"]


def npm_audit_command() -> list[str]:
    return ["audit", "--json"]


def run_semgrep(
    target: str,
    config: str = DEFAULT_SEMGREP_CONFIG,
    limits: ScanLimitConfig | None = None,
) -> ToolResult:
    """Run Semgrep static analysis over ``target``."""

    limits = limits or ScanLimitConfig.from_env()
    return invoke(
        SEMGREP_SPEC,
        semgrep_command(target, config),
        target=target,
        timeout_seconds=limits.semgrep_timeout_seconds,
        max_output_bytes=limits.max_tool_output_bytes,
    )


def run_gitleaks(target: str, limits: ScanLimitConfig | None = None) -> ToolResult:
    """Run Gitleaks secret detection over ``target`` (no VCS history)."""

    limits = limits or ScanLimitConfig.from_env()
    return invoke(
        GITLEAKS_SPEC,
        gitleaks_command(target),
        target=target,
        timeout_seconds=limits.gitleaks_timeout_seconds,
        max_output_bytes=limits.max_tool_output_bytes,
    )


def run_npm_audit(project_path: str, limits: ScanLimitConfig | None = None) -> ToolResult:
    """Run ``npm audit`` inside ``project_path``."""

    limits = limits or ScanLimitConfig.from_env()
    return invoke(
        NPM_AUDIT_SPEC,
        npm_audit_command(),
        target=project_path,
        timeout_seconds=limits.npm_audit_timeout_seconds,
        max_output_bytes=limits.max_tool_output_bytes,
        cwd=project_path,
    )


def probe_tools(names: tuple[str, ...] = (SEMGREP, GITLEAKS)) -> dict[str, bool]:
    """Return availability for each named tool."""

    return {name: check_available(TOOL_SPECS[name].binary) for name in names}
