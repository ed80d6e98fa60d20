# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Substitution weights for characters that OCR engines commonly confuse.

Weights run from 0.0 (indistinguishable) to 1.0 (unrelated). A pair without
an entry costs the default 1.0. Pairs are stored symmetrically so lookup order
never matters.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Tuple

DEFAULT_SUBSTITUTION_COST = 1.0
CASE_ONLY_COST = 0.3

# (a, b, weight). 0.3 = very common, 0.5 = common, 0.7 = occasional.
_DOMAIN_CONFUSIONS: Tuple[Tuple[str, str, float], ...] = (
    ("0", "O", 0.3),
    ("0", "o", 0.3),
    ("1", "l", 0.3),
    ("1", "I", 0.3),
    ("l", "I", 0.3),
    ("1", "|", 0.3),
    ("l", "|", 0.3),
    ("I", "|", 0.3),
    ("5", "S", 0.5),
    ("5", "s", 0.5),
    ("8", "B", 0.5),
    ("6", "G", 0.7),
    ("2", "Z", 0.5),
    ("2", "z", 0.5),
    ("9", "g", 0.7),
    ("9", "q", 0.7),
    ("C", "G", 0.7),
    ("c", "G", 0.7),
    ("C", "c", 0.5),
    ("E", "F", 0.7),
    ("e", "c", 0.7),
    ("H", "N", 0.7),
    ("M", "N", 0.7),
    ("U", "V", 0.7),
    ("u", "v", 0.7),
    ("W", "w", 0.5),
    ("D", "O", 0.7),
    ("D", "0", 0.7),
    (".", ",", 0.5),
    ("-", "_", 0.5),
    ("-", "–", 0.3),
    ("-", "—", 0.3),
    (" ", "_", 0.7),
    ("k", "K", 0.5),
    ("o", "O", 0.5),
    ("p", "P", 0.5),
    ("s", "S", 0.5),
    ("u", "U", 0.5),
    ("v", "V", 0.5),
    ("x", "X", 0.5),
    ("z", "Z", 0.5),
)


def _check_char(value: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"confusion pairs are single characters, got {value!r}")
    return value


class ConfusionTable:
    """Symmetric mapping of character pairs to substitution costs."""

    def __init__(self, entries: Iterable[Tuple[str, str, float]] = ()) -> None:
        self._weights: Dict[Tuple[str, str], float] = {}
        for a, b, weight in entries:
            self.add_confusion(a, b, weight)

    def add_confusion(self, a: str, b: str, weight: float) -> None:
        """Register ``weight`` for both ``(a, b)`` and ``(b, a)``."""

        _check_char(a)
        _check_char(b)
        weight = float(weight)
        if not 0.0 <= weight <= 1.0:
            raise ValueError(f"confusion weight must be within [0, 1], got {weight}")
        self._weights[(a, b)] = weight
        self._weights[(b, a)] = weight

    def weight(self, a: str, b: str) -> Optional[float]:
        return self._weights.get((a, b))

    def substitution_cost(self, a: str, b: str) -> float:
        """Cost of replacing ``a`` with ``b`` in OCR-weighted mode."""

        if a == b:
            return 0.0
        direct = self._weights.get((a, b))
        if direct is not None:
            return direct
        if a.isalpha() and b.isalpha():
            la, lb = a.lower(), b.lower()
            if la == lb:
                return CASE_ONLY_COST
            lowered = self._weights.get((la, lb))
            if lowered is not None:
                return lowered
        return DEFAULT_SUBSTITUTION_COST

    def copy(self) -> "ConfusionTable":
        clone = ConfusionTable()
        clone._weights = dict(self._weights)
        return clone

    def pairs(self) -> Iterator[Tuple[str, str, float]]:
        for (a, b), weight in self._weights.items():
            yield a, b, weight

    def __len__(self) -> int:
        return len(self._weights)

    def __contains__(self, pair: object) -> bool:
        return pair in self._weights

    def __repr__(self) -> str:
        return f"ConfusionTable({len(self._weights) // 2} pairs)"


def default_confusions() -> ConfusionTable:
    """Return a fresh table seeded with the built-in OCR look-alikes."""

    return ConfusionTable(_DOMAIN_CONFUSIONS)


__all__ = [
    "CASE_ONLY_COST",
    "DEFAULT_SUBSTITUTION_COST",
    "ConfusionTable",
    "default_confusions",
]
