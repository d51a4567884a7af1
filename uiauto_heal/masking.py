# uiauto_heal/masking.py
"""
@file masking.py
@brief Redaction of credential-looking key=value substrings before logging.

Handles plain pairs (password=secret, user_password=secret) as well as
quoted JSON-ish pairs ({"password": "secret"}).
"""

from __future__ import annotations
import re
from typing import Optional

MASK = "****"

SENSITIVE_KEYS = ("password", "passwd", "pwd", "secret", "token", "api_key", "apikey", "api-key")

# Keys may carry a prefix (user_password); the key must end right before an
# optional closing quote and the separator.
_SENSITIVE_PATTERN = re.compile(
    r"(?i)(" + "|".join(re.escape(k) for k in SENSITIVE_KEYS) + r")"
    r"([\"']?\s*[=:]\s*)"
    r"(?:([\"'])(.*?)\3|([^\s&;,\"'}\]]+))"
)


def _mask(match: "re.Match[str]") -> str:
    key, sep, quote = match.group(1), match.group(2), match.group(3)
    if quote:
        return f"{key}{sep}{quote}{MASK}{quote}"
    return f"{key}{sep}{MASK}"


def mask_sensitive(text: Optional[str]) -> Optional[str]:
    """
    Mask the value part of sensitive key=value pairs.

    mask_sensitive("user=bob password=secret123") -> "user=bob password=****"
    Text without such pairs is returned unchanged.
    """
    if text is None:
        return None
    return _SENSITIVE_PATTERN.sub(_mask, text)
