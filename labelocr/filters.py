# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Regex clean-ups a reviewer can apply to OCR text before saving it."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class TextFilter:
    name: str
    label: str
    description: str
    pattern: str
    replacement: str = ""
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def apply(self, text: Optional[str]) -> Optional[str]:
        if not text:
            return text
        return self._compiled.sub(self.replacement, text)

    def __str__(self) -> str:
        return self.name


LETTERS_ONLY = TextFilter(
    "Letters Only",
    "abcABC",
    "Keep only letters (a-z, A-Z). Removes numbers, symbols, and whitespace.",
    r"[^a-zA-Z]",
)
NUMBERS_ONLY = TextFilter(
    "Numbers Only",
    "123",
    "Keep only numbers (0-9). Removes letters, symbols, and whitespace.",
    r"[^0-9]",
)
ALPHANUMERIC = TextFilter(
    "Alphanumeric",
    "aA1",
    "Keep letters and numbers only. Removes symbols and whitespace.",
    r"[^a-zA-Z0-9]",
)
FILENAME_SAFE = TextFilter(
    "Filename Safe",
    "-_.",
    "Keep characters safe for filenames: letters, numbers, dash, underscore, period.",
    r"[^a-zA-Z0-9._-]",
)
STANDARD_CHARS = TextFilter(
    "Standard Chars",
    "&*!",
    "Remove unusual characters. Keep letters, numbers, common punctuation, and spaces.",
    r"[^a-zA-Z0-9\s.,;:!?'\"()-]",
)
NO_WHITESPACE = TextFilter(
    "No Whitespace",
    "_ _",
    "Replace all whitespace (spaces, tabs, newlines) with underscores.",
    r"\s+",
    "_",
)

ALL_FILTERS: Tuple[TextFilter, ...] = (
    LETTERS_ONLY,
    NUMBERS_ONLY,
    ALPHANUMERIC,
    FILENAME_SAFE,
    STANDARD_CHARS,
    NO_WHITESPACE,
)


def apply_filters(text: Optional[str], *filters: TextFilter) -> Optional[str]:
    """Apply ``filters`` left to right."""

    for text_filter in filters:
        text = text_filter.apply(text)
    return text


__all__ = [
    "ALL_FILTERS",
    "ALPHANUMERIC",
    "FILENAME_SAFE",
    "LETTERS_ONLY",
    "NO_WHITESPACE",
    "NUMBERS_ONLY",
    "STANDARD_CHARS",
    "TextFilter",
    "apply_filters",
]
