"""Redaction rules that keep secret material out of public responses."""

from __future__ import annotations

import re
from typing import Any, Mapping

from .patterns import SECRET_CATALOG

REDACTION_MARKER = "****REDACTED****"
"""Fixed token that replaces everything after a secret's visible prefix."""

VISIBLE_PREFIX_CHARS = 4
"""Number of leading characters of a secret that may remain visible."""

QUOTED_VALUE_PATTERN = re.compile(r"(['\"])([^'\"]{8,})(['\"])")
"""Quoted literal of at least eight characters, the shape most leaks take."""


def redact_value(value: str) -> str:
    """Keep the short visible prefix of ``value`` and replace the rest."""

    return f"{value[:VISIBLE_PREFIX_CHARS]}{REDACTION_MARKER}"


def mask(line: str) -> str:
    """Redact every quoted substring of eight or more characters.

    The original quote characters are preserved around the redacted value.
    """

    return QUOTED_VALUE_PATTERN.sub(
        lambda m: f"{m.group(1)}{redact_value(m.group(2))}{m.group(3)}", line
    )


def redact_secret(preview: str, secret: str) -> str:
    """Remove any raw occurrence of ``secret`` still present in ``preview``."""

    if not secret:
        return preview
    return preview.replace(secret, redact_value(secret))


def scrub_secrets(text: str) -> str:
    """Mask quoted literals and any catalogued secret shape in free text."""

    scrubbed = mask(text)
    for signature in SECRET_CATALOG:
        scrubbed = signature.pattern.sub(lambda m: redact_value(m.group(0)), scrubbed)
    return scrubbed


def sanitize_public_response(payload: Mapping[str, Any]) -> dict[str, str]:
    """Return a copy with every value stripped of secret-shaped fragments."""

    return {key: scrub_secrets(str(value)) for key, value in payload.items()}
