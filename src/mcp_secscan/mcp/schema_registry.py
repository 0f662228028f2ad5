"""Access to the bundled JSON schemas and their published examples."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft7Validator, ValidationError

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
EXAMPLE_DIR = SCHEMA_DIR / "examples"

SchemaValidationError = ValidationError
"""Alias for jsonschema.ValidationError.
Keeps callers unaware of the implementation.
"""

SCHEMA_FILES = {
    "scan_code_input_v0.1": "scan_code_input_schema_v0.1.json",
    "scan_secrets_input_v0.1": "scan_secrets_input_schema_v0.1.json",
    "scan_directory_input_v0.1": "scan_directory_input_schema_v0.1.json",
    "semgrep_scan_input_v0.1": "semgrep_scan_input_schema_v0.1.json",
    "gitleaks_scan_input_v0.1": "gitleaks_scan_input_schema_v0.1.json",
    "full_security_scan_input_v0.1": "full_security_scan_input_schema_v0.1.json",
    "npm_audit_input_v0.1": "npm_audit_input_schema_v0.1.json",
    "security_checklist_input_v0.1": "security_checklist_input_schema_v0.1.json",
    "explain_vulnerability_input_v0.1": "explain_vulnerability_input_schema_v0.1.json",
    "tool_call_response_v0.1": "tool_call_response_schema_v0.1.json",
}

EXAMPLE_FILES = {
    "scan_code_input_example_min": "scan_code_input_example_min.json",
    "scan_directory_input_example_min": "scan_directory_input_example_min.json",
    "semgrep_scan_input_example_min": "semgrep_scan_input_example_min.json",
    "security_checklist_input_example_min": "security_checklist_input_example_min.json",
    "tool_call_response_example_min": "tool_call_response_example_min.json",
    "tool_call_error_example_min": "tool_call_error_example_min.json",
}

_SCHEMAS: dict[str, Mapping[str, Any]] = {}
_EXAMPLES: dict[str, Mapping[str, Any]] = {}


def _load_json_file(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def get_schema(name: str) -> Mapping[str, Any]:
    """Return the JSON schema with the given registry name."""

    if name not in _SCHEMAS:
        _SCHEMAS[name] = _load_json_file(SCHEMA_DIR / SCHEMA_FILES[name])
    return _SCHEMAS[name]


def get_example(name: str) -> Mapping[str, Any]:
    """Return a representative example payload by name."""

    if name not in _EXAMPLES:
        _EXAMPLES[name] = _load_json_file(EXAMPLE_DIR / EXAMPLE_FILES[name])
    return _EXAMPLES[name]


def validate(name: str, instance: Any) -> None:
    """Validate an instance against a named schema."""

    Draft7Validator(get_schema(name)).validate(instance)
