"""Cacheability policy for translation requests.

Only single tokens are worth persisting: words such as ``cat``, ``Straße`` or ``e-mail``.
Sentences and anything containing spaces or several punctuation marks are translated fresh
on every request.
"""

from __future__ import annotations

import unicodedata
from typing import Final

__all__: list[str] = ["MAX_CACHEABLE_LENGTH", "is_cacheable"]

MAX_CACHEABLE_LENGTH: Final[int] = 100
MAX_PUNCTUATION_COUNT: Final[int] = 1
ALLOWED_SYMBOLS: Final[frozenset[str]] = frozenset("-_")


def _is_letter(ch: str) -> bool:
    return unicodedata.category(ch)[0] in ("L", "M")


def _is_alphanumeric(ch: str) -> bool:
    return unicodedata.category(ch)[0] in ("L", "M", "N")


def _is_punctuation(ch: str) -> bool:
    # Unicode P* includes '-' (Pd) and '_' (Pc)
    return unicodedata.category(ch).startswith("P")


def is_cacheable(text: str) -> bool:
    """Decide whether a translation of ``text`` may be cached.

    The checks run on the whitespace-trimmed text, in order:

    1. longer than ``MAX_CACHEABLE_LENGTH`` characters: reject
    2. empty: reject
    3. contains a space: reject
    4. more than one punctuation character: reject
    5. no letter at all: reject
    6. any character other than letters, marks, digits, ``-`` or ``_``: reject

    Args:
        text (str): Text as supplied by the caller.

    Returns:
        bool: True if the translation may be cached.
    """
    trimmed: str = text.strip()

    if len(trimmed) > MAX_CACHEABLE_LENGTH:
        return False
    if not trimmed:
        return False
    if " " in trimmed:
        return False
    if sum(1 for ch in trimmed if _is_punctuation(ch)) > MAX_PUNCTUATION_COUNT:
        return False
    if not any(_is_letter(ch) for ch in trimmed):
        return False
    return all(_is_alphanumeric(ch) or ch in ALLOWED_SYMBOLS for ch in trimmed)
