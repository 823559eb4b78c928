from __future__ import annotations

from typing import Any

from .errors import InvalidInputError


def normalize_word(raw: Any) -> str:
    """Canonical lookup key: surrounding whitespace trimmed, lower-cased."""
    key = raw.strip().lower() if isinstance(raw, str) else ""
    if not key:
        raise InvalidInputError("Word is required")
    return key
