"""Tests for the verification judge."""

import pytest

from action_types import ActionCategory, keywords_for
from action_verifier import candidate_terms, label_terms, verify
from conftest import results


def test_label_terms_split_synonyms_and_words():
    """Test comma splitting, trimming and lowercasing of a label."""
    assert label_terms("Water bottle , Flask") == {"water bottle", "water", "bottle", "flask"}


def test_candidate_terms_cover_all_classifications():
    """Test that terms come from every classification, not just the top one."""
    terms = candidate_terms(results(("desk", 0.8), ("paper towel", 0.2)))
    assert {"desk", "paper towel", "paper", "towel"} <= terms


@pytest.mark.parametrize("category", list(ActionCategory))
def test_exact_keyword_label_is_accepted(category):
    """Test that a label equal to a keyword (any case) is accepted."""
    keyword = sorted(keywords_for(category))[0]
    verdict = verify(results((keyword.upper(), 0.11)), category)
    assert verdict.accepted
    assert keyword in verdict.matched_labels


@pytest.mark.parametrize("category", list(ActionCategory))
def test_empty_classifications_are_rejected(category):
    """Test that nothing recognized means rejection for every category."""
    verdict = verify([], category)
    assert not verdict.accepted
    assert verdict.matched_labels == frozenset()
    assert verdict.classifications == ()


def test_matched_labels_are_within_candidates_and_keywords():
    """Test the subset relation and the accepted flag."""
    classified = results(("Lakeside, lakeshore", 0.4), ("shower curtain", 0.3), ("tap", 0.2))
    verdict = verify(classified, ActionCategory.CONSERVE_WATER)
    assert verdict.matched_labels <= candidate_terms(classified) & keywords_for(ActionCategory.CONSERVE_WATER)
    assert verdict.matched_labels == {"shower", "tap"}
    assert verdict.accepted == bool(verdict.matched_labels)


def test_low_confidence_match_is_enough():
    """Test that a single match just above the floor accepts the action."""
    verdict = verify(results(("car", 0.85), ("sapling", 0.11)), ActionCategory.PLANT_TREE)
    assert verdict.accepted
    assert verdict.matched_labels == {"sapling"}


def test_verify_is_idempotent():
    """Test that identical inputs give identical verdicts."""
    classified = results(("plastic bottle", 0.82), ("desk", 0.3))
    assert verify(classified, ActionCategory.RECYCLE) == verify(classified, ActionCategory.RECYCLE)


def test_accepted_rationale_lists_contributing_classifications():
    """Test that the acceptance rationale names category and matching pairs only."""
    verdict = verify(results(("plastic bottle", 0.82), ("desk", 0.3)), ActionCategory.RECYCLE)
    assert verdict.accepted
    assert {"bottle", "plastic"} <= verdict.matched_labels
    assert "recycle" in verdict.rationale
    assert "plastic bottle: 82.0%" in verdict.rationale
    assert "desk" not in verdict.rationale


def test_rejected_rationale_lists_all_classifications():
    """Test that the rejection rationale shows every observed pair."""
    verdict = verify(results(("car", 0.9), ("wheel", 0.2)), ActionCategory.PLANT_TREE)
    assert not verdict.accepted
    assert "car: 90.0%" in verdict.rationale
    assert "wheel: 20.0%" in verdict.rationale


def test_empty_rationale_lists_no_classifications():
    """Test the rationale when inference produced nothing."""
    verdict = verify([], ActionCategory.CLEAN_UP)
    assert "%" not in verdict.rationale
    assert "Classifications detected" not in verdict.rationale
