"""Free-text input sanitising.

This strips angle brackets and escapes quotes. It is not an HTML sanitiser:
attribute-based or entity-encoded payloads pass through, so values must still
be escaped by whatever renders them.
"""

from __future__ import annotations

_QUOTE_ENTITIES = str.maketrans({'"': "&quot;", "'": "&#x27;"})
_TAG_CHARS = str.maketrans("", "", "<>")


def sanitize_input(text: str, max_length: int = 255) -> str:
    """Trim, drop ``<``/``>``, escape quotes, then truncate to ``max_length``."""
    cleaned = text.strip().translate(_TAG_CHARS).translate(_QUOTE_ENTITIES)
    return cleaned[:max_length]


def sanitize_optional(text: str | None, max_length: int = 255) -> str | None:
    if text is None:
        return None
    return sanitize_input(text, max_length)
