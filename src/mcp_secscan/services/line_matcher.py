"""Stateless line-by-line pattern evaluation.

Each line is tested independently against every rule with a fresh
``search`` call, so no match position carries over between lines or files.
Findings come back in input line order; within a line they follow catalog
order.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..domain.models import Finding
from .patterns import (
    SECRET_CATALOG,
    SECRET_SEVERITY,
    VULNERABILITY_CATALOG,
    CategoryRules,
    PatternRule,
    SecretSignature,
)
from .sanitizer import mask, redact_secret

MAX_SNIPPET_CHARS = 100
"""Upper bound on every preview stored in a finding."""

DEFAULT_FILENAME = "input"


def split_lines(text: str) -> list[str]:
    return text.split("\n")


def rule_matches(rule: PatternRule, line: str) -> bool:
    """Return True when ``rule`` matches anywhere in ``line``."""

    return rule.pattern.search(line) is not None


def secret_matches(signature: SecretSignature, line: str) -> list[str]:
    """Return every substring of ``line`` matched by ``signature``."""

    return [match.group(0) for match in signature.pattern.finditer(line)]


def masked_preview(line: str, secrets: Iterable[str]) -> str:
    """Build the bounded, redacted preview stored on a secret finding."""

    preview = mask(line.strip())
    for secret in secrets:
        preview = redact_secret(preview, secret)
    return preview[:MAX_SNIPPET_CHARS]


def scan_code(
    text: str,
    filename: str = DEFAULT_FILENAME,
    catalog: Sequence[CategoryRules] = VULNERABILITY_CATALOG,
) -> tuple[Finding, ...]:
    """Return vulnerability-pattern findings for ``text``."""

    findings: list[Finding] = []
    for index, line in enumerate(split_lines(text)):
        for entry in catalog:
            for rule in entry.rules:
                if not rule_matches(rule, line):
                    continue
                findings.append(
                    Finding(
                        category=entry.category.value,
                        severity=entry.severity,
                        file=filename,
                        line=index + 1,
                        snippet=line.strip()[:MAX_SNIPPET_CHARS],
                        issue=rule.description,
                        reference=entry.owasp_id,
                    )
                )
    return tuple(findings)


def scan_secrets(
    text: str,
    filename: str = DEFAULT_FILENAME,
    catalog: Sequence[SecretSignature] = SECRET_CATALOG,
) -> tuple[Finding, ...]:
    """Return hardcoded-secret findings for ``text`` with masked previews."""

    findings: list[Finding] = []
    for index, line in enumerate(split_lines(text)):
        for signature in catalog:
            secrets = secret_matches(signature, line)
            if not secrets:
                continue
            findings.append(
                Finding(
                    category=signature.name,
                    severity=SECRET_SEVERITY,
                    file=filename,
                    line=index + 1,
                    snippet=masked_preview(line, secrets),
                    issue=f"Possible {signature.name} committed to source",
                    is_secret=True,
                )
            )
    return tuple(findings)
