"""LOCAL CLI that runs the scan tools without an MCP transport."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from .mcp import server

STDIN_MARKER = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secscan",
        description="Run SecScan security checks locally.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("code", "Scan one file (or stdin) for vulnerability patterns."),
        ("secrets", "Scan one file (or stdin) for hardcoded secrets."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("source", help="File to scan, or '-' to read stdin.")
        cmd.add_argument("--filename", help="Name reported in findings.")

    for name, help_text in (
        ("dir", "Recursively scan a directory with the regex engine."),
        ("full", "Run Semgrep and Gitleaks, with regex fallback."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("path", help="Directory to scan.")
        cmd.add_argument(
            "--ext",
            action="append",
            dest="extensions",
            help="File extension to include (repeatable).",
        )

    semgrep = sub.add_parser("semgrep", help="Run Semgrep static analysis.")
    semgrep.add_argument("path", help="File or directory to scan.")
    semgrep.add_argument("--config", help="Semgrep ruleset (default: auto).")

    gitleaks = sub.add_parser("gitleaks", help="Run Gitleaks secret detection.")
    gitleaks.add_argument("path", help="File or directory to scan.")

    sub.add_parser("tools", help="List the available tools.")
    return parser


def _read_source(parser: argparse.ArgumentParser, source: str) -> str:
    if source == STDIN_MARKER:
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        parser.error(f"cannot read {source}: {exc.strerror}")
    return ""  # pragma: no cover - parser.error exits


def build_request(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> tuple[str, dict[str, Any]]:
    """Translate parsed arguments into a tool name plus its arguments."""

    if args.command in ("code", "secrets"):
        request: dict[str, Any] = {"code": _read_source(parser, args.source)}
        filename = args.filename or (None if args.source == STDIN_MARKER else args.source)
        if filename:
            request["filename"] = filename
        tool = "scan_code" if args.command == "code" else "scan_secrets"
        return tool, request
    if args.command in ("dir", "full"):
        request = {"path": args.path}
        if args.extensions:
            request["extensions"] = args.extensions
        tool = "scan_directory" if args.command == "dir" else "full_security_scan"
        return tool, request
    if args.command == "semgrep":
        request = {"path": args.path}
        if args.config:
            request["config"] = args.config
        return "semgrep_scan", request
    return "gitleaks_scan", {"path": args.path}


def response_text(response: Mapping[str, Any]) -> str:
    return "\n".join(part["text"] for part in response["content"])


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "tools":
        sys.stdout.write(json.dumps(server.list_tools(), indent=2))
        sys.stdout.write("\n")
        return 0

    tool, request = build_request(parser, args)
    response = server.call_tool(tool, request)
    sys.stdout.write(response_text(response))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
