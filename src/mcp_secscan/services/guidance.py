"""Static best-practice checklists and vulnerability explanations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Mapping

from ..domain.models import Severity

BEST_PRACTICES: Mapping[str, tuple[str, ...]] = {
    "authentication": (
        "Use bcrypt or argon2 for password hashing (cost factor 10+)",
        "Implement rate limiting on login endpoints",
        "Use secure session management (httpOnly, secure, sameSite cookies)",
        "Implement MFA for sensitive operations",
        "Use short-lived JWTs with refresh token rotation",
    ),
    "api": (
        "Validate all input on the server side",
        "Use parameterized queries for database access",
        "Implement proper CORS configuration",
        "Use HTTPS everywhere",
        "Add security headers (Helmet.js for Node)",
        "Rate limit API endpoints",
        "Log security events for monitoring",
    ),
    "secrets": (
        "Never commit secrets to version control",
        "Use environment variables or secret managers",
        "Rotate secrets regularly",
        "Use .gitignore and .env.example patterns",
        "Consider using tools like git-secrets or pre-commit hooks",
    ),
    "dependencies": (
        "Run npm audit / pip audit regularly",
        "Keep dependencies updated",
        "Use lockfiles (package-lock.json, pnpm-lock.yaml)",
        "Review new dependencies before adding",
        "Consider using Snyk or Dependabot",
    ),
    "frontend": (
        "Sanitize user input before rendering",
        "Use Content Security Policy headers",
        "Avoid innerHTML, use textContent or frameworks",
        "Validate and sanitize file uploads",
        "Implement CSRF protection",
    ),
}

ALL_AREAS = "all"


@dataclass(frozen=True)
class Explanation:
    what: str
    example: str
    fix: str
    severity: Severity


VULNERABILITY_EXPLANATIONS: Mapping[str, Explanation] = {
    "sql injection": Explanation(
        what="Attacker inserts malicious SQL through user input, manipulating database queries.",
        example=(
            "// VULNERABLE\n"
            'db.query("SELECT * FROM users WHERE id = " + userId);\n\n'
            "// SAFE\n"
            'db.query("SELECT * FROM users WHERE id = ?", [userId]);'
        ),
        fix=(
            "Use parameterized queries or prepared statements. "
            "Never concatenate user input into queries."
        ),
        severity=Severity.CRITICAL,
    ),
    "xss": Explanation(
        what=(
            "Cross-Site Scripting allows attackers to inject malicious scripts "
            "into web pages viewed by users."
        ),
        example=(
            "// VULNERABLE\n"
            "element.innerHTML = userInput;\n\n"
            "// SAFE\n"
            "element.textContent = userInput;\n"
            "// Or use a framework that auto-escapes"
        ),
        fix="Sanitize all user input. Use textContent instead of innerHTML. Implement CSP headers.",
        severity=Severity.HIGH,
    ),
    "csrf": Explanation(
        what=(
            "Cross-Site Request Forgery tricks users into performing unwanted "
            "actions on authenticated sites."
        ),
        example=(
            "// VULNERABLE - no CSRF token\n"
            "app.post('/transfer', (req, res) => {\n"
            "  transfer(req.body.to, req.body.amount);\n"
            "});\n\n"
            "// SAFE - with CSRF token\n"
            "app.post('/transfer', csrfProtection, (req, res) => {...});"
        ),
        fix="Use CSRF tokens. Implement SameSite cookies. Verify Origin/Referer headers.",
        severity=Severity.HIGH,
    ),
    "command injection": Explanation(
        what="Attacker injects OS commands through user input that gets executed on the server.",
        example=(
            "// VULNERABLE\n"
            'exec("ls " + userInput);\n\n'
            "// SAFE\n"
            'execFile("ls", [sanitizedInput]);'
        ),
        fix="Avoid exec(). Use execFile() with arguments array. Validate and sanitize all input.",
        severity=Severity.CRITICAL,
    ),
    "path traversal": Explanation(
        what="Attacker accesses files outside intended directory using ../ sequences.",
        example=(
            "// VULNERABLE\n"
            'fs.readFile("/uploads/" + filename);\n\n'
            "// SAFE\n"
            'const safePath = path.join("/uploads", path.basename(filename));'
        ),
        fix=(
            "Use path.basename() to strip directory components. "
            "Validate paths are within allowed directory."
        ),
        severity=Severity.HIGH,
    ),
    "ssrf": Explanation(
        what=(
            "Server-Side Request Forgery tricks server into making requests "
            "to unintended locations."
        ),
        example=(
            "// VULNERABLE\n"
            "fetch(req.body.url);\n\n"
            "// SAFE\n"
            "const parsed = new URL(req.body.url);\n"
            "if (ALLOWED_HOSTS.includes(parsed.host)) {...}"
        ),
        fix="Whitelist allowed hosts/IPs. Block internal/private IP ranges. Validate URL schemes.",
        severity=Severity.HIGH,
    ),
}


def render_checklist(area: str) -> str:
    """Return the checklist for ``area`` (or every area for ``all``)."""

    if area == ALL_AREAS:
        return json.dumps({k: list(v) for k, v in BEST_PRACTICES.items()}, indent=2)
    items = BEST_PRACTICES.get(area)
    if items is None:
        return f"Unknown area. Available: {', '.join(BEST_PRACTICES)}"
    body = "\n".join(f"- [ ] {item}" for item in items)
    return f"## {area.upper()} Security Checklist\n\n{body}"


def explain_vulnerability(name: str) -> str:
    """Explain a known vulnerability class, or list the ones that are known."""

    explanation = VULNERABILITY_EXPLANATIONS.get(name.strip().lower())
    if explanation is None:
        available = ", ".join(VULNERABILITY_EXPLANATIONS)
        return (
            f"Detailed explanations are available for: {available}\n\n"
            "Other vulnerability classes are not covered by this catalog."
        )
    return (
        f"## {name.strip().upper()}\n\n"
        f"**Severity**: {explanation.severity.value}\n\n"
        f"### What is it?\n{explanation.what}\n\n"
        f"### Example\n```javascript\n{explanation.example}\n```\n\n"
        f"### How to fix\n{explanation.fix}\n"
    )
