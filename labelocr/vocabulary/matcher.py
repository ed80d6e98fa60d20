# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Correct OCR strings against a list of known-valid values.

Two substitution modes are available per call:

* standard: every substitution costs 1.0. Use it for identifiers where a
  digit/letter difference is meaningful (``PBS_01`` vs ``PBS_O1``).
* weighted: look-alike pairs from a :class:`ConfusionTable` cost less, so
  0/O and 1/l/I noise is absorbed cheaply.

A candidate is rejected early when the raw length difference exceeds
``max_edit_distance``. That pre-filter ignores weights, so weighted mode can
lose candidates whose fractional distance would have qualified.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import MatchResult
from .confusion import ConfusionTable, default_confusions
from .distance import edit_distance, similarity
from .loader import VocabularyFormat, load_vocabulary, load_vocabulary_file

logger = logging.getLogger("labelocr.vocabulary")


class MatchOptions(BaseModel):
    """Thresholds and mode flags for a single matching call."""

    model_config = ConfigDict(frozen=True)

    max_edit_distance: float = Field(2.0, ge=0.0)
    min_similarity: float = Field(0.6, ge=0.0, le=1.0)
    case_insensitive: bool = True
    weighted: bool = False
    # Resolve equal-distance candidates by similarity instead of first found.
    prefer_similarity: bool = False


_DEFAULT_OPTIONS = MatchOptions()


def _normalize(value: str, options: MatchOptions) -> str:
    return value.lower() if options.case_insensitive else value


def _score(
    normalized_text: str,
    normalized_candidate: str,
    options: MatchOptions,
    confusions: Optional[ConfusionTable],
) -> Optional[Tuple[float, float]]:
    """Return ``(distance, similarity)`` when the candidate passes both thresholds."""

    if abs(len(normalized_text) - len(normalized_candidate)) > options.max_edit_distance:
        return None
    distance = edit_distance(
        normalized_text,
        normalized_candidate,
        weighted=options.weighted,
        confusions=confusions,
    )
    if distance > options.max_edit_distance:
        return None
    score = similarity(normalized_text, normalized_candidate, distance)
    if score < options.min_similarity:
        return None
    return distance, score


def find_best_match(
    text: str,
    vocabulary: Sequence[str],
    options: Optional[MatchOptions] = None,
    confusions: Optional[ConfusionTable] = None,
) -> Optional[MatchResult]:
    """Return the closest vocabulary entry to ``text`` or ``None``.

    The first entry equal to ``text`` after case normalization wins outright.
    Otherwise the lowest distance wins, and among equal distances the entry
    seen first is kept unless ``options.prefer_similarity`` is set.
    """

    if not text or not vocabulary:
        return None
    options = options or _DEFAULT_OPTIONS
    normalized_text = _normalize(text, options)

    best: Optional[MatchResult] = None
    for candidate in vocabulary:
        normalized_candidate = _normalize(candidate, options)
        if normalized_text == normalized_candidate:
            return MatchResult(matched_value=candidate, original_value=text, edit_distance=0.0, similarity=1.0)

        scored = _score(normalized_text, normalized_candidate, options, confusions)
        if scored is None:
            continue
        distance, score = scored
        if best is None or distance < best.edit_distance or (
            options.prefer_similarity and distance == best.edit_distance and score > best.similarity
        ):
            best = MatchResult(matched_value=candidate, original_value=text, edit_distance=distance, similarity=score)

    return best


def find_all_matches(
    text: str,
    vocabulary: Sequence[str],
    options: Optional[MatchOptions] = None,
    confusions: Optional[ConfusionTable] = None,
    max_results: int = 5,
) -> List[MatchResult]:
    """Return every qualifying entry, closest first, at most ``max_results``."""

    if not text or not vocabulary or max_results <= 0:
        return []
    options = options or _DEFAULT_OPTIONS
    normalized_text = _normalize(text, options)

    matches: List[MatchResult] = []
    for candidate in vocabulary:
        scored = _score(normalized_text, _normalize(candidate, options), options, confusions)
        if scored is None:
            continue
        distance, score = scored
        matches.append(
            MatchResult(matched_value=candidate, original_value=text, edit_distance=distance, similarity=score)
        )

    matches.sort(key=lambda match: match.edit_distance)
    return matches[:max_results]


def correct_all(
    field_values: Mapping[str, str],
    vocabulary: Sequence[str],
    options: Optional[MatchOptions] = None,
    confusions: Optional[ConfusionTable] = None,
) -> Dict[str, str]:
    """Replace each value with its vocabulary match when one differs from it.

    Exact matches and values without a match come back unchanged.
    """

    corrected: Dict[str, str] = {}
    for key, value in field_values.items():
        match = find_best_match(value, vocabulary, options, confusions)
        if match is not None and match.was_corrected:
            logger.debug(
                "Corrected '%s' -> '%s' (distance=%.2f, similarity=%.2f)",
                value,
                match.matched_value,
                match.edit_distance,
                match.similarity,
            )
            corrected[key] = match.matched_value
        else:
            corrected[key] = value
    return corrected


class VocabularyMatcher:
    """Own a vocabulary and a confusion table and match OCR text against them.

    The matcher's ``options`` are defaults; every matching method accepts an
    ``options`` override so the mode can change per call.
    """

    def __init__(
        self,
        vocabulary: Optional[Sequence[str]] = None,
        options: Optional[MatchOptions] = None,
        confusions: Optional[ConfusionTable] = None,
    ) -> None:
        self._vocabulary: List[str] = list(vocabulary or [])
        self.options = options or MatchOptions()
        self.confusions = confusions.copy() if confusions is not None else default_confusions()

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        return tuple(self._vocabulary)

    @property
    def size(self) -> int:
        return len(self._vocabulary)

    @property
    def has_vocabulary(self) -> bool:
        return bool(self._vocabulary)

    def load(self, source: str, fmt: Union[VocabularyFormat, str] = VocabularyFormat.LINES) -> int:
        """Replace the vocabulary with values parsed from ``source``."""

        self._vocabulary = load_vocabulary(source, fmt)
        return len(self._vocabulary)

    def load_file(self, path: Union[str, Path], fmt: Optional[Union[VocabularyFormat, str]] = None) -> int:
        self._vocabulary = load_vocabulary_file(path, fmt)
        return len(self._vocabulary)

    def clear(self) -> None:
        self._vocabulary = []

    def add_confusion(self, a: str, b: str, weight: float) -> None:
        self.confusions.add_confusion(a, b, weight)

    def find_best_match(self, text: str, options: Optional[MatchOptions] = None) -> Optional[MatchResult]:
        return find_best_match(text, self._vocabulary, options or self.options, self.confusions)

    def find_all_matches(
        self,
        text: str,
        max_results: int = 5,
        options: Optional[MatchOptions] = None,
    ) -> List[MatchResult]:
        return find_all_matches(text, self._vocabulary, options or self.options, self.confusions, max_results)

    def correct_all(self, field_values: Mapping[str, str], options: Optional[MatchOptions] = None) -> Dict[str, str]:
        return correct_all(field_values, self._vocabulary, options or self.options, self.confusions)

    def __repr__(self) -> str:
        return f"VocabularyMatcher(entries={len(self._vocabulary)}, weighted={self.options.weighted})"


__all__ = [
    "MatchOptions",
    "VocabularyMatcher",
    "correct_all",
    "find_all_matches",
    "find_best_match",
]
