"""Name normalization for contact/policyholder comparison."""

import re
import unicodedata
from typing import Optional

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: Optional[str]) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace.

    "  María   López-Pérez " -> "maria lopezperez"

    Args:
        value: Raw name; None is accepted

    Returns:
        str: Normalized name using only ``[a-z0-9 ]``, or "" for None
    """
    if not value:
        return ""

    text = unicodedata.normalize("NFD", str(value).lower())
    text = _COMBINING_MARKS.sub("", text)
    text = _NON_ALNUM.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def name_tokens(normalized: str) -> list[str]:
    """Split a normalized name, dropping tokens of two characters or fewer."""
    return [token for token in normalized.split(" ") if len(token) > 2]
