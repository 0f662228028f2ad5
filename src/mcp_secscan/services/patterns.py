"""Static vulnerability and secret catalogs consulted by the line matcher.

Both catalogs are built once at import time and exposed as tuples of frozen
dataclasses. Nothing in the engine mutates them; callers receive them by
reference.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from ..domain.models import Severity


class VulnerabilityCategory(Enum):
    """OWASP-style vulnerability classes detected by line patterns."""

    INJECTION = "Injection"
    BROKEN_AUTHENTICATION = "Broken Authentication"
    SENSITIVE_DATA_EXPOSURE = "Sensitive Data Exposure"
    XML_EXTERNAL_ENTITIES = "XML External Entities"
    BROKEN_ACCESS_CONTROL = "Broken Access Control"
    SECURITY_MISCONFIGURATION = "Security Misconfiguration"
    CRYPTOGRAPHIC_FAILURES = "Cryptographic Failures"
    SERVER_SIDE_REQUEST_FORGERY = "Server-Side Request Forgery"


_CATEGORY_SEVERITY: Mapping[VulnerabilityCategory, Severity] = {
    VulnerabilityCategory.INJECTION: Severity.HIGH,
    VulnerabilityCategory.BROKEN_AUTHENTICATION: Severity.CRITICAL,
    VulnerabilityCategory.SENSITIVE_DATA_EXPOSURE: Severity.HIGH,
    VulnerabilityCategory.XML_EXTERNAL_ENTITIES: Severity.MEDIUM,
    VulnerabilityCategory.BROKEN_ACCESS_CONTROL: Severity.HIGH,
    VulnerabilityCategory.SECURITY_MISCONFIGURATION: Severity.MEDIUM,
    VulnerabilityCategory.CRYPTOGRAPHIC_FAILURES: Severity.MEDIUM,
    VulnerabilityCategory.SERVER_SIDE_REQUEST_FORGERY: Severity.HIGH,
}

_UNMAPPED = [c.name for c in VulnerabilityCategory if c not in _CATEGORY_SEVERITY]
if _UNMAPPED:
    raise RuntimeError(f"Categories without a severity: {', '.join(_UNMAPPED)}")

SECRET_SEVERITY = Severity.CRITICAL
"""Every secret finding carries this severity, whatever its signature."""


def severity_for(category: VulnerabilityCategory) -> Severity:
    """Return the severity bucket for a vulnerability category."""

    return _CATEGORY_SEVERITY[category]


@dataclass(frozen=True)
class PatternRule:
    """One compiled line pattern plus the reason it is reported."""

    pattern: re.Pattern[str]
    description: str


@dataclass(frozen=True)
class CategoryRules:
    category: VulnerabilityCategory
    owasp_id: str
    rules: tuple[PatternRule, ...]

    @property
    def severity(self) -> Severity:
        return severity_for(self.category)


@dataclass(frozen=True)
class SecretSignature:
    name: str
    pattern: re.Pattern[str]


def _rule(source: str, description: str, *, ignore_case: bool = False) -> PatternRule:
    flags = re.IGNORECASE if ignore_case else 0
    return PatternRule(pattern=re.compile(source, flags), description=description)


def _secret(name: str, source: str, *, ignore_case: bool = False) -> SecretSignature:
    flags = re.IGNORECASE if ignore_case else 0
    return SecretSignature(name=name, pattern=re.compile(source, flags))


VULNERABILITY_CATALOG: tuple[CategoryRules, ...] = (
    CategoryRules(
        VulnerabilityCategory.INJECTION,
        "A03:2021",
        (
            _rule(
                r"\$\{.*\}.*sql|sql.*\$\{",
                "Potential SQL injection via template literals",
                ignore_case=True,
            ),
            _rule(r"exec\s*\(|spawn\s*\(|execSync", "Command execution - validate input"),
            _rule(r"eval\s*\(", "eval() is dangerous - avoid if possible"),
            _rule(
                r"new\s+Function\s*\(",
                "Dynamic function creation - potential injection",
            ),
            _rule(r"innerHTML\s*=|outerHTML\s*=", "innerHTML can lead to XSS"),
            _rule(r"document\.write", "document.write can lead to XSS"),
            _rule(
                r"\.query\s*\(\s*['\"`].*\+|\.query\s*\(\s*`.*\$\{",
                "String concatenation in SQL query",
            ),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.BROKEN_AUTHENTICATION,
        "A07:2021",
        (
            _rule(
                r"password\s*[=:]\s*['\"][^'\"]{1,20}['\"]",
                "Hardcoded password detected",
                ignore_case=True,
            ),
            _rule(
                r"api[_-]?key\s*[=:]\s*['\"][^'\"]+['\"]",
                "Hardcoded API key detected",
                ignore_case=True,
            ),
            _rule(
                r"secret\s*[=:]\s*['\"][^'\"]+['\"]",
                "Hardcoded secret detected",
                ignore_case=True,
            ),
            _rule(
                r"jwt\.sign\([^)]*expiresIn:\s*['\"]?\d{4,}[dhms]?['\"]?",
                "Very long JWT expiration",
                ignore_case=True,
            ),
            _rule(r"bcrypt\.compare.*then.*==|===.*true", "Timing-safe comparison issue"),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.SENSITIVE_DATA_EXPOSURE,
        "A02:2021",
        (
            _rule(
                r"console\.(log|info|debug)\s*\([^)]*password|token|secret|key",
                "Logging sensitive data",
                ignore_case=True,
            ),
            _rule(
                r"localStorage\.setItem\s*\([^)]*token|password|secret",
                "Storing sensitive data in localStorage",
                ignore_case=True,
            ),
            _rule(r"http://(?!localhost|127\.0\.0\.1)", "HTTP (not HTTPS) URL detected"),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.XML_EXTERNAL_ENTITIES,
        "A05:2021",
        (
            _rule(
                r"parseXML|DOMParser|xml2js",
                "XML parsing - ensure external entities disabled",
            ),
            _rule(r"<!ENTITY", "XML entity definition - potential XXE"),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.BROKEN_ACCESS_CONTROL,
        "A01:2021",
        (
            _rule(
                r"req\.params\.(id|userId).*without.*auth|without.*check",
                "ID from params without auth check",
                ignore_case=True,
            ),
            _rule(r"isAdmin\s*=\s*req\.(body|query|params)", "Admin flag from user input"),
            _rule(r"role\s*=\s*req\.(body|query|params)", "Role from user input"),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.SECURITY_MISCONFIGURATION,
        "A05:2021",
        (
            _rule(r"cors\(\s*\)|origin:\s*['\"]?\*", "Overly permissive CORS"),
            _rule(
                r"helmet\s*\(\s*\{[^}]*contentSecurityPolicy:\s*false",
                "CSP disabled",
            ),
            _rule(
                r"NODE_ENV.*production.*console|console.*NODE_ENV",
                "Debug logging in production check",
            ),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.CRYPTOGRAPHIC_FAILURES,
        "A02:2021",
        (
            _rule(r"md5|sha1(?!\d)", "Weak hash algorithm (use SHA-256+)", ignore_case=True),
            _rule(
                r"Math\.random\s*\(\s*\).*password|token|secret|key",
                "Math.random for security (use crypto)",
                ignore_case=True,
            ),
            _rule(r"createCipher\(|createDecipher\(", "Deprecated crypto methods"),
        ),
    ),
    CategoryRules(
        VulnerabilityCategory.SERVER_SIDE_REQUEST_FORGERY,
        "A10:2021",
        (
            _rule(
                r"fetch\s*\(\s*req\.(body|query|params)|axios.*req\.(body|query|params)",
                "URL from user input - potential SSRF",
            ),
            _rule(
                r"request\s*\(\s*\{[^}]*url:\s*req\.",
                "URL from request - validate carefully",
            ),
        ),
    ),
)
"""Vulnerability categories in evaluation order."""

_MISSING_RULES = set(VulnerabilityCategory) - {entry.category for entry in VULNERABILITY_CATALOG}
if _MISSING_RULES:
    raise RuntimeError("Every vulnerability category needs a rule set.")


SECRET_CATALOG: tuple[SecretSignature, ...] = (
    _secret("AWS Access Key", r"AKIA[0-9A-Z]{16}"),
    _secret("AWS Secret Key", r"[A-Za-z0-9/+=]{40}"),
    _secret("GitHub Token", r"ghp_[a-zA-Z0-9]{36}|github_pat_[a-zA-Z0-9_]{22,}"),
    _secret("Slack Token", r"xox[baprs]-[0-9a-zA-Z-]+"),
    _secret("Private Key", r"-----BEGIN (RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"),
    _secret(
        "Generic API Key",
        r"api[_-]?key['\":\s]*[=:]\s*['\"][a-zA-Z0-9]{20,}['\"]",
        ignore_case=True,
    ),
    _secret(
        "Generic Secret",
        r"secret['\":\s]*[=:]\s*['\"][a-zA-Z0-9]{20,}['\"]",
        ignore_case=True,
    ),
    _secret("JWT Token", r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*"),
    _secret("Anthropic API Key", r"sk-ant-[a-zA-Z0-9-]+"),
    _secret("OpenAI API Key", r"sk-[a-zA-Z0-9]{48}"),
    _secret("Stripe Key", r"sk_live_[a-zA-Z0-9]{24,}"),
    _secret("Supabase Key", r"sbp_[a-zA-Z0-9]{40}"),
)
"""Secret signatures in evaluation order."""
