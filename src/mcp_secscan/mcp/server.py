"""Tool registry and request boundary for the SecScan MCP server.

The transport (tool listing / invocation framing) lives outside this
package; it hands each request to :func:`call_tool` and relays the returned
mapping. Every response is validated against the published response schema
and error details are scrubbed of secret-shaped text before they leave.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Mapping

from ..domain.errors import (
    FileAccessError,
    PayloadTooLargeError,
    ToolExecutionError,
    UnknownOperationError,
)
from ..domain.models import Finding, ToolResult, ToolStatus
from ..services.directory_walker import scan_directory
from ..services.external_tools import (
    DEFAULT_SEMGREP_CONFIG,
    INSTALL_HINTS,
    probe_tools,
    run_gitleaks,
    run_npm_audit,
    run_semgrep,
)
from ..services.guidance import explain_vulnerability, render_checklist
from ..services.line_matcher import DEFAULT_FILENAME, scan_code, scan_secrets
from ..services.orchestrator import render_full_scan, run_full_scan
from ..services.report import render_directory_scan
from ..services.sanitizer import sanitize_public_response
from ..services.scan_limits import ScanLimitConfig
from . import reason_codes, schema_registry
from .schema_registry import SchemaValidationError

_LOG = logging.getLogger(__name__)

SERVER_NAME = "security-mcp"
SERVER_VERSION = "1.0.0"
RESPONSE_SCHEMA = "tool_call_response_v0.1"


def _text_response(text: str) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": False}


def _sanitized_error(reason: str, detail: str) -> dict[str, Any]:
    """Return a sanitized error payload with a stable reason code."""

    scrubbed = sanitize_public_response({"reason": reason, "detail": detail})
    return {
        "content": [{"type": "text", "text": f"Error: {scrubbed['detail']}"}],
        "isError": True,
        "reason": scrubbed["reason"],
    }


def _findings_json(findings: tuple[Finding, ...]) -> str:
    return json.dumps([finding.to_mapping() for finding in findings], indent=2)


def _require_existing(path: str, *, directory: bool) -> str:
    """Return ``path`` made absolute, or raise when it is missing."""

    candidate = Path(path)
    exists = candidate.is_dir() if directory else candidate.exists()
    if not exists:
        kind = "directory" if directory else "path"
        raise FileAccessError(f"The requested {kind} does not exist: {path}")
    return os.path.abspath(path)


def _tool_outcome(result: ToolResult, label: str, noun: str) -> dict[str, Any]:
    """Shared rendering for single-tool operations."""

    if result.status is ToolStatus.NOT_INSTALLED:
        hint = INSTALL_HINTS.get(result.tool, f"{label} not installed")
        return _text_response(
            f"{hint}\n\nFalling back to regex scan: use scan_directory or full_security_scan."
        )
    if result.status is ToolStatus.FAILED:
        return _sanitized_error(reason_codes.TOOL_EXECUTION_FAILED, f"{label} error: {result.error}")
    if not result.findings:
        return _text_response(f"{label}: No {noun.replace('(s)', 's')} found!")
    return _text_response(
        f"{label} found {len(result.findings)} {noun}:\n\n{_findings_json(result.findings)}"
    )


class HealthResource:
    """Readiness digest including external tool availability."""

    __slots__ = ()

    def get_status(self) -> Mapping[str, str]:
        tools = ", ".join(
            f"{name}={'available' if ok else 'missing'}" for name, ok in probe_tools().items()
        )
        raw_payload = {
            "status": "ok",
            "detail": f"SecScan MCP server ready ({tools})",
        }
        return sanitize_public_response(raw_payload)

    def __call__(self) -> Mapping[str, str]:
        return self.get_status()


class ScanTool:
    """Base class: validate arguments, run, validate the response."""

    __slots__ = ()

    name = ""
    description = ""
    input_schema = ""

    def __call__(self, arguments: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.call(arguments)

    def definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": dict(schema_registry.get_schema(self.input_schema)),
        }

    def call(self, arguments: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            schema_registry.validate(self.input_schema, arguments)
        except SchemaValidationError as exc:
            return _sanitized_error(
                reason_codes.INVALID_INPUT, f"Request failed validation: {exc.message}"
            )

        try:
            response = self.handle(arguments, ScanLimitConfig.from_env())
        except PayloadTooLargeError as exc:
            return _sanitized_error(reason_codes.PAYLOAD_TOO_LARGE, str(exc))
        except FileAccessError as exc:
            return _sanitized_error(reason_codes.PATH_NOT_FOUND, str(exc))
        except ToolExecutionError as exc:
            return _sanitized_error(reason_codes.TOOL_EXECUTION_FAILED, str(exc))
        except Exception:
            _LOG.exception("Tool %s failed", self.name)
            return _sanitized_error(
                reason_codes.INTERNAL_ERROR, f"{self.name} failed unexpectedly."
            )

        try:
            schema_registry.validate(RESPONSE_SCHEMA, response)
        except SchemaValidationError:
            return _sanitized_error(
                reason_codes.RESPONSE_VALIDATION_FAILED,
                "Service output did not meet the public contract.",
            )
        return response

    def handle(
        self, arguments: Mapping[str, Any], limits: ScanLimitConfig
    ) -> Mapping[str, Any]:  # pragma: no cover - abstract
        raise NotImplementedError


def _bounded_code(arguments: Mapping[str, Any], limits: ScanLimitConfig) -> str:
    code = arguments["code"]
    if len(code.encode("utf-8")) > limits.max_code_bytes:
        raise PayloadTooLargeError(
            f"Submitted code exceeds the {limits.max_code_bytes} byte limit."
        )
    return code


class ScanCodeTool(ScanTool):
    __slots__ = ()

    name = "scan_code"
    description = "Scan code for security vulnerabilities (OWASP top 10 patterns)"
    input_schema = "scan_code_input_v0.1"

    def handle(self, arguments, limits):
        code = _bounded_code(arguments, limits)
        findings = scan_code(code, arguments.get("filename") or DEFAULT_FILENAME)
        if not findings:
            return _text_response("No security issues detected in the provided code.")
        return _text_response(_findings_json(findings))


class ScanSecretsTool(ScanTool):
    __slots__ = ()

    name = "scan_secrets"
    description = "Scan code for hardcoded secrets, API keys, tokens"
    input_schema = "scan_secrets_input_v0.1"

    def handle(self, arguments, limits):
        code = _bounded_code(arguments, limits)
        findings = scan_secrets(code, arguments.get("filename") or DEFAULT_FILENAME)
        if not findings:
            return _text_response("No secrets detected in the provided code.")
        return _text_response(f"SECRETS DETECTED:\n{_findings_json(findings)}")


class ScanDirectoryTool(ScanTool):
    __slots__ = ()

    name = "scan_directory"
    description = "Recursively scan a directory for security issues and secrets"
    input_schema = "scan_directory_input_v0.1"

    def handle(self, arguments, limits):
        root = _require_existing(arguments["path"], directory=True)
        scan = scan_directory(root, arguments.get("extensions"), limits)
        return _text_response(render_directory_scan(scan))


class SemgrepScanTool(ScanTool):
    __slots__ = ()

    name = "semgrep_scan"
    description = (
        "Run Semgrep static analysis (catches logic bugs, security issues). "
        "More accurate than regex patterns."
    )
    input_schema = "semgrep_scan_input_v0.1"

    def handle(self, arguments, limits):
        target = _require_existing(arguments["path"], directory=False)
        config = arguments.get("config") or DEFAULT_SEMGREP_CONFIG
        return _tool_outcome(run_semgrep(target, config, limits), "Semgrep", "issue(s)")


class GitleaksScanTool(ScanTool):
    __slots__ = ()

    name = "gitleaks_scan"
    description = (
        "Run Gitleaks to detect hardcoded secrets (API keys, passwords, tokens). "
        "More accurate than regex."
    )
    input_schema = "gitleaks_scan_input_v0.1"

    def handle(self, arguments, limits):
        target = _require_existing(arguments["path"], directory=False)
        return _tool_outcome(run_gitleaks(target, limits), "Gitleaks", "secret(s)")


class NpmAuditTool(ScanTool):
    __slots__ = ()

    name = "npm_audit"
    description = "Run npm audit on a project to check for vulnerable dependencies"
    input_schema = "npm_audit_input_v0.1"

    def handle(self, arguments, limits):
        project = _require_existing(arguments["projectPath"], directory=True)
        return _tool_outcome(
            run_npm_audit(project, limits), "npm audit", "vulnerable package(s)"
        )


class FullSecurityScanTool(ScanTool):
    __slots__ = ()

    name = "full_security_scan"
    description = (
        "Run ALL security tools (Semgrep + Gitleaks + regex fallback). "
        "Comprehensive pre-push check."
    )
    input_schema = "full_security_scan_input_v0.1"

    def handle(self, arguments, limits):
        target = _require_existing(arguments["path"], directory=True)
        result = run_full_scan(target, extensions=arguments.get("extensions"), limits=limits)
        return _text_response(render_full_scan(result))


class SecurityChecklistTool(ScanTool):
    __slots__ = ()

    name = "security_checklist"
    description = "Get a security best practices checklist for a specific area"
    input_schema = "security_checklist_input_v0.1"

    def handle(self, arguments, limits):
        return _text_response(render_checklist(arguments["area"]))


class ExplainVulnerabilityTool(ScanTool):
    __slots__ = ()

    name = "explain_vulnerability"
    description = "Explain a security vulnerability and how to fix it"
    input_schema = "explain_vulnerability_input_v0.1"

    def handle(self, arguments, limits):
        return _text_response(explain_vulnerability(arguments["vulnerability"]))


TOOL_REGISTRY: dict[str, ScanTool] = {
    tool.name: tool
    for tool in (
        ScanCodeTool(),
        ScanSecretsTool(),
        ScanDirectoryTool(),
        NpmAuditTool(),
        SecurityChecklistTool(),
        ExplainVulnerabilityTool(),
        SemgrepScanTool(),
        GitleaksScanTool(),
        FullSecurityScanTool(),
    )
}
"""Exposed operations keyed by tool name."""

RESOURCE_REGISTRY = {"health": HealthResource()}


def list_tools() -> list[dict[str, Any]]:
    """Return name, description and input schema for every exposed tool."""

    return [tool.definition() for tool in TOOL_REGISTRY.values()]


def get_tool(name: str) -> ScanTool:
    tool = TOOL_REGISTRY.get(name)
    if tool is None:
        raise UnknownOperationError(f"Unknown tool: {name}")
    return tool


def call_tool(name: str, arguments: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    """Dispatch one tool invocation; failures stay confined to this request."""

    try:
        tool = get_tool(name)
    except UnknownOperationError as exc:
        return _sanitized_error(reason_codes.UNKNOWN_TOOL, str(exc))
    return tool(arguments if arguments is not None else {})


def create_server() -> Mapping[str, Any]:
    """Return the configured tools and resources for this server."""

    return {
        "name": SERVER_NAME,
        "version": SERVER_VERSION,
        "tools": TOOL_REGISTRY,
        "resources": RESOURCE_REGISTRY,
    }


def main() -> None:
    """Log available tools and resources without launching a transport."""

    sys.stdout.write(f"{SERVER_NAME} {SERVER_VERSION} initialized with tools:\n\n")
    for tool in TOOL_REGISTRY.values():
        sys.stdout.write(f"- {tool.name}: {tool.description}\n")
    sys.stdout.write("\nResources:\n\n")
    for name, resource in RESOURCE_REGISTRY.items():
        sys.stdout.write(f"- {name}: {resource.get_status()}\n")


if __name__ == "__main__":
    main()
