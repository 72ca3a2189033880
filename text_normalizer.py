"""
text_normalizer.py — Normalization of free-text condition and requirement fields.

Garden conditions and plant requirements are stored as free text
("Full sun, 6-8 hours", "Warm, 75-85°F"). Every keyword or number lookup
made by the viability engine goes through NormalizedText so the matching
vocabulary can later be replaced by structured units without touching
callers.
"""

import re
from typing import Optional

_DIGITS = re.compile(r'\d+')


class NormalizedText:
    """Lower-cased, trimmed view of a free-text field."""

    __slots__ = ('text',)

    def __init__(self, raw: Optional[str] = None):
        self.text = (raw or "").lower().strip()

    def __repr__(self):
        return f"NormalizedText({self.text!r})"

    def __bool__(self):
        return bool(self.text)

    def contains(self, keyword: str) -> bool:
        """Case-insensitive substring test."""
        return keyword.lower() in self.text

    def contains_any(self, *keywords: str) -> bool:
        return any(self.contains(keyword) for keyword in keywords)

    def first_integer(self) -> Optional[int]:
        """
        First contiguous run of digits as a base-10 integer.

        "Warm, 75-85°F" -> 75, "about 18 C" -> 18, "mild" -> None.
        A leading minus sign is not part of the run.
        """
        match = _DIGITS.search(self.text)
        if match is None:
            return None
        return int(match.group(0))


def normalize(text: Optional[str]) -> NormalizedText:
    """Normalize a free-text field. None and "" both give empty text."""
    return NormalizedText(text)


def join_fields(*fields: Optional[str]) -> NormalizedText:
    """Normalize several fields as one space-separated string."""
    return NormalizedText(" ".join(f for f in fields if f))
