# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Vocabulary-based correction of OCR text."""

from .confusion import CASE_ONLY_COST, DEFAULT_SUBSTITUTION_COST, ConfusionTable, default_confusions
from .distance import edit_distance, similarity
from .loader import (
    HEADER_KEYWORDS,
    VocabularyFormat,
    format_for_path,
    load_vocabulary,
    load_vocabulary_file,
    looks_like_header,
)
from .matcher import MatchOptions, VocabularyMatcher, correct_all, find_all_matches, find_best_match

__all__ = [
    "CASE_ONLY_COST",
    "ConfusionTable",
    "DEFAULT_SUBSTITUTION_COST",
    "HEADER_KEYWORDS",
    "MatchOptions",
    "VocabularyFormat",
    "VocabularyMatcher",
    "correct_all",
    "default_confusions",
    "edit_distance",
    "find_all_matches",
    "find_best_match",
    "format_for_path",
    "load_vocabulary",
    "load_vocabulary_file",
    "looks_like_header",
    "similarity",
]
