"""Scrub credentials from text before it reaches the terminal or the logs."""

import re
from collections.abc import Iterable

REDACTED = "REDACTED"

# (pattern, replacement) pairs applied in order
SENSITIVE_PATTERNS = [
    (r"(api[_-]?key|token|authorization|secret|password)([=:\"'\s]+)\S+", r"\1\2" + REDACTED),
    (r"Bearer\s+\S+", f"Bearer {REDACTED}"),
    (r"sk-ant-[a-zA-Z0-9\-_]+", f"sk-ant-{REDACTED}"),
    (r"sk-[a-zA-Z0-9\-_]{20,}", f"sk-{REDACTED}"),
    # NVIDIA API catalog keys
    (r"nvapi-[a-zA-Z0-9\-_]+", f"nvapi-{REDACTED}"),
]


def redact_sensitive(text: str, secrets: Iterable[str | None] = ()) -> str:
    """
    Redact credentials from text.

    Args:
        text: Text potentially containing credentials
        secrets: Exact values known to be secret (e.g. the configured API key)

    Returns:
        Text with credentials replaced

    Example:
        >>> redact_sensitive("request failed for key abc123", secrets=["abc123"])
        'request failed for key REDACTED'
    """
    result = text
    for secret in secrets:
        if secret:
            result = result.replace(secret, REDACTED)
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)
    return result
