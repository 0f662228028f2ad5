"""Severity bucketing and markdown rendering."""

from __future__ import annotations

from mcp_secscan.domain.models import DirectoryScan, Finding, Severity
from mcp_secscan.services.report import build_report, render, render_directory_scan


def _finding(severity: Severity, line: int, *, is_secret: bool = False) -> Finding:
    return Finding(
        category="Injection",
        severity=severity,
        file="a.js",
        line=line,
        snippet="eval(x)",
        issue="eval() is dangerous - avoid if possible",
        is_secret=is_secret,
    )


def test_empty_report_has_zero_counts_and_no_sections() -> None:
    text = render([])

    assert "# Security Scan Report" in text
    for label in ("Critical", "High", "Medium", "Low"):
        assert f"- {label}: 0" in text
    assert text.count("## ") == 1
    assert "## Summary" in text


def test_counts_match_bucket_sizes() -> None:
    findings = [
        _finding(Severity.HIGH, 1),
        _finding(Severity.HIGH, 2),
        _finding(Severity.MEDIUM, 3),
    ]
    report = build_report(findings)

    assert report.counts == {
        Severity.CRITICAL: 0,
        Severity.HIGH: 2,
        Severity.MEDIUM: 1,
        Severity.LOW: 0,
    }
    assert report.total == len(findings)


def test_secrets_always_land_in_critical() -> None:
    report = build_report([_finding(Severity.LOW, 1, is_secret=True)])

    assert report.counts[Severity.CRITICAL] == 1
    assert report.counts[Severity.LOW] == 0


def test_sections_render_in_fixed_order() -> None:
    text = render(
        [
            _finding(Severity.MEDIUM, 3),
            _finding(Severity.CRITICAL, 1, is_secret=True),
            _finding(Severity.HIGH, 2),
        ]
    )

    critical = text.index("## Critical Issues")
    high = text.index("## High Severity")
    medium = text.index("## Medium Severity")
    assert critical < high < medium
    assert "## Low Severity" not in text
    assert "- **a.js:2** - eval() is dangerous - avoid if possible (Injection)" in text
    assert "  `eval(x)`" in text


def test_location_without_line_number() -> None:
    finding = Finding(
        category="lodash",
        severity=Severity.HIGH,
        file="package.json",
        line=None,
        snippet="",
        issue="Prototype Pollution",
    )

    assert "- **package.json** - Prototype Pollution (lodash)" in render([finding])


def test_directory_scan_notes_skipped_files() -> None:
    scan = DirectoryScan(files_scanned=3, skipped=("big.js",))

    text = render_directory_scan(scan)

    assert "Files scanned: 3; skipped (unreadable or too large): 1" in text


def test_owasp_reference_is_shown_with_the_category() -> None:
    finding = Finding(
        category="Injection",
        severity=Severity.HIGH,
        file="a.js",
        line=1,
        snippet="eval(x)",
        issue="eval() is dangerous - avoid if possible",
        reference="A03:2021",
    )

    assert "(Injection, A03:2021)" in render([finding])
