# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Weighted Levenshtein distance."""
from __future__ import annotations

from typing import List, Optional

from .confusion import DEFAULT_SUBSTITUTION_COST, ConfusionTable, default_confusions

_INDEL_COST = 1.0
_BUILTIN_CONFUSIONS = default_confusions()


def edit_distance(
    a: str,
    b: str,
    *,
    weighted: bool = False,
    confusions: Optional[ConfusionTable] = None,
) -> float:
    """Return the edit distance between ``a`` and ``b``.

    Insertions and deletions cost 1.0. Substitutions cost 1.0 in standard
    mode; in weighted mode they cost the confusion weight for the pair. The
    result is fractional when weighted substitutions were used.
    """

    if weighted and confusions is None:
        confusions = _BUILTIN_CONFUSIONS

    rows = len(a) + 1
    cols = len(b) + 1
    dp: List[List[float]] = [[0.0] * cols for _ in range(rows)]
    for i in range(rows):
        dp[i][0] = float(i)
    for j in range(cols):
        dp[0][j] = float(j)

    for i in range(1, rows):
        ca = a[i - 1]
        for j in range(1, cols):
            cb = b[j - 1]
            if ca == cb:
                dp[i][j] = dp[i - 1][j - 1]
                continue
            if weighted:
                sub_cost = confusions.substitution_cost(ca, cb)  # type: ignore[union-attr]
            else:
                sub_cost = DEFAULT_SUBSTITUTION_COST
            dp[i][j] = min(
                dp[i - 1][j] + _INDEL_COST,
                dp[i][j - 1] + _INDEL_COST,
                dp[i - 1][j - 1] + sub_cost,
            )

    return dp[-1][-1]


def similarity(a: str, b: str, distance: float) -> float:
    """``1 - distance / max(len(a), len(b))``; two empty strings are identical."""

    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - distance / longest


__all__ = ["edit_distance", "similarity"]
