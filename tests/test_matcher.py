# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

import pytest

from labelocr.vocabulary import (
    MatchOptions,
    VocabularyMatcher,
    correct_all,
    default_confusions,
    find_all_matches,
    find_best_match,
)

WEIGHTED = MatchOptions(weighted=True)


def test_weighted_mode_corrects_zero_letter_o():
    match = find_best_match("PBS_0O1", ["PBS_001"], WEIGHTED)
    assert match is not None
    assert match.matched_value == "PBS_001"
    assert match.edit_distance == pytest.approx(0.3)
    assert match.was_corrected


def test_standard_mode_reaches_same_value_with_full_cost():
    match = find_best_match("PBS_0O1", ["PBS_001"])
    assert match is not None
    assert match.matched_value == "PBS_001"
    assert match.edit_distance == 1.0
    assert match.similarity == pytest.approx(1 - 1 / 7)


def test_exact_match_after_case_folding_returns_vocabulary_spelling():
    match = find_best_match("pbs_001", ["PBS_002", "PBS_001"])
    assert match is not None
    assert match.is_exact
    assert match.matched_value == "PBS_001"
    assert match.original_value == "pbs_001"
    assert match.similarity == 1.0


def test_case_sensitive_mode_counts_case_differences():
    assert find_best_match("pbs_001", ["PBS_001"], MatchOptions(case_insensitive=False)) is None


@pytest.mark.parametrize("text", ["PBS_0O1", "S1O", "labe1"])
def test_weighted_distance_never_worse_than_standard(text):
    vocabulary = ["PBS_001", "S10", "label"]
    standard = find_best_match(text, vocabulary)
    weighted = find_best_match(text, vocabulary, WEIGHTED)
    assert standard is not None and weighted is not None
    assert weighted.edit_distance <= standard.edit_distance


def test_rejects_candidates_beyond_thresholds():
    assert find_best_match("A", ["ABCD"]) is None
    assert find_best_match("ab", ["xy"]) is None
    assert find_best_match("ABCDEFG", ["XYZ"]) is None


def test_empty_inputs_have_no_match():
    assert find_best_match("", ["A"]) is None
    assert find_best_match("A", []) is None
    assert find_all_matches("", ["A"]) == []


def test_ties_keep_first_candidate_by_default():
    match = find_best_match("ABC", ["AB", "ABCD"])
    assert match is not None
    assert match.matched_value == "AB"


def test_prefer_similarity_breaks_distance_ties():
    match = find_best_match("ABC", ["AB", "ABCD"], MatchOptions(prefer_similarity=True))
    assert match is not None
    assert match.matched_value == "ABCD"
    assert match.similarity == pytest.approx(0.75)


def test_find_all_matches_sorted_by_distance():
    matches = find_all_matches("ABC", ["XBC", "ABC", "ABD", "QQQQQQ"])
    assert [m.matched_value for m in matches] == ["ABC", "XBC", "ABD"]
    assert [m.edit_distance for m in matches] == [0, 1, 1]
    assert len(find_all_matches("ABC", ["XBC", "ABC", "ABD"], max_results=2)) == 2


def test_correct_all_replaces_only_corrected_values():
    fields = {"sample": "PBS_0O1", "species": "mouse", "note": "zzzzzz"}
    corrected = correct_all(fields, ["PBS_001", "Mouse"], WEIGHTED)
    assert corrected == {"sample": "PBS_001", "species": "mouse", "note": "zzzzzz"}
    assert list(corrected) == list(fields)


def test_matcher_owns_vocabulary_and_overrides_per_call():
    matcher = VocabularyMatcher()
    assert not matcher.has_vocabulary
    assert matcher.load("Sample,Notes\nPBS_001,x\nPBS_002,y\n", "csv") == 2
    assert matcher.vocabulary == ("PBS_001", "PBS_002")
    assert matcher.size == 2

    assert matcher.find_best_match("PBS_0O1").edit_distance == 1.0
    assert matcher.find_best_match("PBS_0O1", WEIGHTED).edit_distance == pytest.approx(0.3)
    assert [m.matched_value for m in matcher.find_all_matches("PBS_00", max_results=1)] == ["PBS_001"]

    matcher.clear()
    assert matcher.find_best_match("PBS_001") is None


def test_matcher_confusions_are_private():
    matcher = VocabularyMatcher(["gate"], MatchOptions(weighted=True))
    assert matcher.find_best_match("qate").edit_distance == 1.0
    matcher.add_confusion("q", "g", 0.1)
    assert matcher.find_best_match("qate").edit_distance == pytest.approx(0.1)
    assert default_confusions().weight("q", "g") is None
    assert VocabularyMatcher(["gate"], MatchOptions(weighted=True)).find_best_match("qate").edit_distance == 1.0


def test_matcher_load_file(tmp_path):
    path = tmp_path / "ids.txt"
    path.write_text("Specimen\tSite\nS-01\tliver\nS-02\tlung\n", encoding="utf-8")
    matcher = VocabularyMatcher()
    assert matcher.load_file(path) == 2
    assert matcher.correct_all({"id": "S-O2"}, WEIGHTED) == {"id": "S-02"}


SELF_MATCH_VOCABULARY = [
    "PBS_001",
    "PBS_0O1",
    "pbs_002",
    "Slide-A",
    "slide-a1",
    "S10",
    "SIO",
    "Liver",
    "LIVER_L",
    "2024-01-15",
    "H&E",
]


@pytest.mark.parametrize(
    "options",
    [
        MatchOptions(),
        MatchOptions(weighted=True),
        MatchOptions(case_insensitive=False),
        MatchOptions(weighted=True, case_insensitive=False),
    ],
    ids=["standard", "weighted", "standard-case-sensitive", "weighted-case-sensitive"],
)
@pytest.mark.parametrize("entry", SELF_MATCH_VOCABULARY)
def test_every_vocabulary_entry_matches_itself(entry, options):
    match = find_best_match(entry, SELF_MATCH_VOCABULARY, options)
    assert match is not None
    assert match.matched_value == entry
    assert match.edit_distance == 0
    assert match.is_exact
