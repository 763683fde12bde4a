"""
String utilities shared by the repositories.
"""

from __future__ import annotations

import unicodedata
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


def clean(value: Optional[str]) -> Optional[str]:
    """Trim; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def collation_key(value: str) -> tuple[str, str]:
    """
    Human-friendly sort key for display names.

    Decomposes, drops combining marks (Latin accents, Arabic tashkeel) and
    casefolds, so "Élise", "elise" and "أَحمد"/"أحمد" sort next to each other.
    The raw string breaks ties to keep the order stable.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value


def sort_by_name(items: Iterable[T], getter: Callable[[T], str]) -> List[T]:
    return sorted(items, key=lambda item: collation_key(getter(item)))
