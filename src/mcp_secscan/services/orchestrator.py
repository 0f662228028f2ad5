"""Combined scan: external tools first, regex fallback when any is missing.

Phases::

    START -> PROBE_TOOLS -> RUN_TOOLS -> AGGREGATE -> REPORT
    START -> PROBE_TOOLS -> RUN_AVAILABLE_TOOLS -> RUN_FALLBACK_WALK -> AGGREGATE -> REPORT

Tool results and fallback findings stay in separate sections. They share no
finding identity, so they are never merged or deduplicated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping

from ..domain.errors import FileAccessError
from ..domain.models import DirectoryScan, ToolResult, ToolStatus
from .directory_walker import scan_directory
from .external_tools import (
    GITLEAKS,
    INSTALL_HINTS,
    SEMGREP,
    TOOL_SPECS,
    run_gitleaks,
    run_semgrep,
)
from .report import format_location, inline_code, render_directory_scan
from .audit_log import TOOL_NOT_INSTALLED_FALLBACK, record_scan_event
from .scan_limits import ScanLimitConfig
from .tool_runner import check_available

_LOG = logging.getLogger(__name__)

ToolRunner = Callable[[str, ScanLimitConfig], ToolResult]
AvailabilityProbe = Callable[[str], bool]

FULL_REPORT_TITLE = "Full Security Scan Report"

SECTION_TITLES = {
    SEMGREP: "Semgrep (Static Analysis)",
    GITLEAKS: "Gitleaks (Secret Detection)",
}
FALLBACK_TITLE = "Regex Fallback Scan"


class ScanPhase(Enum):
    START = "START"
    PROBE_TOOLS = "PROBE_TOOLS"
    RUN_TOOLS = "RUN_TOOLS"
    RUN_AVAILABLE_TOOLS = "RUN_AVAILABLE_TOOLS"
    RUN_FALLBACK_WALK = "RUN_FALLBACK_WALK"
    AGGREGATE = "AGGREGATE"
    REPORT = "REPORT"


def _semgrep_runner(target: str, limits: ScanLimitConfig) -> ToolResult:
    return run_semgrep(target, limits=limits)


def _gitleaks_runner(target: str, limits: ScanLimitConfig) -> ToolResult:
    return run_gitleaks(target, limits=limits)


DEFAULT_RUNNERS: Mapping[str, ToolRunner] = {
    SEMGREP: _semgrep_runner,
    GITLEAKS: _gitleaks_runner,
}


def default_probe(tool: str) -> bool:
    spec = TOOL_SPECS.get(tool)
    return check_available(spec.binary if spec else tool)


@dataclass(frozen=True)
class FullScanResult:
    """Everything the combined scan learned, section by section."""

    target: str
    tools: tuple[ToolResult, ...]
    fallback: DirectoryScan | None
    phases: tuple[ScanPhase, ...]

    @property
    def fallback_used(self) -> bool:
        return self.fallback is not None

    def tool(self, name: str) -> ToolResult | None:
        for result in self.tools:
            if result.tool == name:
                return result
        return None


def run_full_scan(
    target: str,
    *,
    probe: AvailabilityProbe | None = None,
    runners: Mapping[str, ToolRunner] | None = None,
    extensions: Iterable[str] | None = None,
    limits: ScanLimitConfig | None = None,
) -> FullScanResult:
    """Probe, run what is installed, and fall back to the walker if needed."""

    if not Path(target).is_dir():
        raise FileAccessError(f"{target} is not a directory")

    probe = probe or default_probe
    runners = runners if runners is not None else DEFAULT_RUNNERS
    limits = limits or ScanLimitConfig.from_env()
    phases = [ScanPhase.START, ScanPhase.PROBE_TOOLS]

    availability = {name: probe(name) for name in runners}
    phases.append(
        ScanPhase.RUN_TOOLS if all(availability.values()) else ScanPhase.RUN_AVAILABLE_TOOLS
    )

    results: list[ToolResult] = []
    for name, runner in runners.items():
        if availability[name]:
            results.append(runner(target, limits))
        else:
            results.append(ToolResult.not_installed(name))

    # A tool can also vanish between probe and launch; both cases fall back.
    missing = [r.tool for r in results if r.status is ToolStatus.NOT_INSTALLED]
    fallback: DirectoryScan | None = None
    if missing:
        for tool in missing:
            record_scan_event(TOOL_NOT_INSTALLED_FALLBACK, tool=tool)
        _LOG.warning("Running regex fallback scan; missing tools: %s", ", ".join(missing))
        phases.append(ScanPhase.RUN_FALLBACK_WALK)
        fallback = scan_directory(target, extensions, limits)

    phases.extend((ScanPhase.AGGREGATE, ScanPhase.REPORT))
    return FullScanResult(
        target=target,
        tools=tuple(results),
        fallback=fallback,
        phases=tuple(phases),
    )


def render_tool_section(result: ToolResult) -> list[str]:
    """Render one tool's outcome as markdown lines (no heading)."""

    if result.status is ToolStatus.NOT_INSTALLED:
        hint = INSTALL_HINTS.get(result.tool, f"{result.tool} not installed")
        return [f"{hint} (covered by the regex fallback scan below)"]
    if result.status is ToolStatus.FAILED:
        return [f"Error: {result.error}"]
    if not result.findings:
        return ["No issues found"]

    noun = "secret(s)" if any(f.is_secret for f in result.findings) else "issue(s)"
    lines = [f"Found {len(result.findings)} {noun}:"]
    for finding in result.findings:
        entry = (
            f"- **{finding.severity.value}** {format_location(finding)} - "
            f"{finding.issue} ({finding.category})"
        )
        if finding.is_secret and finding.snippet:
            entry += f" {inline_code(finding.snippet)}"
        lines.append(entry)
    return lines


def render_full_scan(result: FullScanResult) -> str:
    """Render tool sections followed by the fallback section when it ran."""

    out = [f"# {FULL_REPORT_TITLE}", ""]
    for tool_result in result.tools:
        out.append(f"## {SECTION_TITLES.get(tool_result.tool, tool_result.tool)}")
        out.extend(render_tool_section(tool_result))
        out.append("")

    if result.fallback is not None:
        out.append(f"## {FALLBACK_TITLE}")
        scan = result.fallback
        if not scan.findings:
            out.append(
                f"No issues found by fallback scan ({scan.files_scanned} files scanned)"
            )
            out.append("")
        else:
            out.append(f"Potential secrets: {len(scan.secrets)}")
            out.append(f"Security patterns: {len(scan.security)}")
            out.append("")
            out.append(render_directory_scan(scan, title="Fallback Findings", level=3))

    return "\n".join(out)
