"""Severity-bucketed markdown reports."""

from __future__ import annotations

from typing import Iterable

from ..domain.models import SEVERITY_ORDER, DirectoryScan, Finding, ScanReport, Severity
from .patterns import SECRET_SEVERITY

REPORT_TITLE = "Security Scan Report"

SECTION_TITLES = {
    Severity.CRITICAL: "Critical Issues",
    Severity.HIGH: "High Severity",
    Severity.MEDIUM: "Medium Severity",
    Severity.LOW: "Low Severity",
}

SUMMARY_LABELS = {
    Severity.CRITICAL: "Critical",
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
}


def bucket_for(finding: Finding) -> Severity:
    """Secrets always land in CRITICAL regardless of their nominal severity."""

    return SECRET_SEVERITY if finding.is_secret else finding.severity


def build_report(findings: Iterable[Finding]) -> ScanReport:
    """Group findings by severity, keeping discovery order within a bucket."""

    buckets: dict[Severity, list[Finding]] = {severity: [] for severity in SEVERITY_ORDER}
    for finding in findings:
        buckets[bucket_for(finding)].append(finding)
    return ScanReport(
        by_severity={severity: tuple(items) for severity, items in buckets.items()}
    )


def format_location(finding: Finding) -> str:
    if finding.line is None:
        return finding.file
    return f"{finding.file}:{finding.line}"


def inline_code(text: str) -> str:
    if "`" in text:
        return f"`` {text} ``"
    return f"`{text}`"


def category_label(finding: Finding) -> str:
    if finding.reference:
        return f"{finding.category}, {finding.reference}"
    return finding.category


def _render_entry(finding: Finding) -> list[str]:
    lines = [
        f"- **{format_location(finding)}** - {finding.issue} ({category_label(finding)})"
    ]
    if finding.snippet:
        lines.append(f"  {inline_code(finding.snippet)}")
    return lines


def render_report(report: ScanReport, title: str = REPORT_TITLE, level: int = 1) -> str:
    """Render the summary (always all four counts) and non-empty sections."""

    heading = "#" * level
    sub = "#" * (level + 1)
    out = [f"{heading} {title}", "", f"{sub} Summary"]
    counts = report.counts
    out.extend(f"- {SUMMARY_LABELS[s]}: {counts[s]}" for s in SEVERITY_ORDER)
    out.append("")

    for severity in SEVERITY_ORDER:
        findings = report.by_severity.get(severity, ())
        if not findings:
            continue
        out.append(f"{sub} {SECTION_TITLES[severity]}")
        out.append("")
        for finding in findings:
            out.extend(_render_entry(finding))
        out.append("")

    return "\n".join(out)


def render(findings: Iterable[Finding], title: str = REPORT_TITLE) -> str:
    """Bucket ``findings`` and render them as a markdown report."""

    return render_report(build_report(findings), title=title)


def render_directory_scan(scan: DirectoryScan, title: str = REPORT_TITLE, level: int = 1) -> str:
    """Render walker output, noting how many files were scanned or skipped."""

    text = render_report(build_report(scan.findings), title=title, level=level)
    note = f"Files scanned: {scan.files_scanned}"
    if scan.skipped:
        note += f"; skipped (unreadable or too large): {len(scan.skipped)}"
    return f"{text}\n{note}\n"
