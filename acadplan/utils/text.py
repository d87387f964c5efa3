"""Small string helpers shared by search and the CLI."""

from __future__ import annotations

from typing import Optional


def truncate(text: Optional[str], max_length: int, suffix: str = "...") -> str:
    if not text or len(text) <= max_length:
        return text or ""
    return text[:max_length] + suffix


def contains_folded(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test; ``needle`` must already be casefolded."""
    return bool(haystack) and needle in haystack.casefold()
