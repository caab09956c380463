"""Decide whether classifier labels support a claimed environmental action."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set, Tuple

from action_types import ActionCategory, keywords_for
from image_classifier import ClassificationResult, format_classifications


@dataclass(frozen=True)
class VerificationVerdict:
    category: ActionCategory
    accepted: bool
    matched_labels: FrozenSet[str]
    classifications: Tuple[ClassificationResult, ...]
    rationale: str


def label_terms(label: str) -> Set[str]:
    """Split one classifier label into lowercase candidate terms.

    Labels may hold comma-separated synonyms (``"Water bottle, flask"``).
    Every trimmed synonym is a term, and so is each word of a multi-word
    synonym, so ``"plastic bottle"`` also yields ``"plastic"`` and ``"bottle"``.
    """
    terms: Set[str] = set()
    for token in label.lower().split(","):
        token = token.strip()
        if not token:
            continue
        terms.add(token)
        terms.update(token.split())
    return terms


def candidate_terms(classifications: Iterable[ClassificationResult]) -> FrozenSet[str]:
    """Flatten the terms of every retained classification into one set."""
    terms: Set[str] = set()
    for result in classifications:
        terms |= label_terms(result.label)
    return frozenset(terms)


def _build_rationale(
    category: ActionCategory,
    matched: FrozenSet[str],
    classifications: Tuple[ClassificationResult, ...],
) -> str:
    if matched:
        contributing: List[ClassificationResult] = [
            result for result in classifications if label_terms(result.label) & matched
        ]
        return (
            f"Great job! Your {category.display_name.lower()} action has been verified and recorded.\n\n"
            f"Matched keywords: {', '.join(sorted(matched))}\n\n"
            f"Classifications detected:\n{format_classifications(contributing)}"
        )

    if not classifications:
        return (
            f"We couldn't recognize anything in this photo to confirm your "
            f"{category.display_name.lower()} action. Please try again with a clearer photo."
        )

    return (
        f"The image doesn't seem to match the {category.display_name.lower()} action. "
        "Please try again with a different photo.\n\n"
        f"Classifications detected:\n{format_classifications(classifications)}"
    )


def verify(
    classifications: Iterable[ClassificationResult],
    category: ActionCategory,
) -> VerificationVerdict:
    """Match classifier output against the category taxonomy.

    Any single keyword hit accepts the action regardless of its confidence;
    results reaching this point already cleared the classifier's floor.
    """
    observed = tuple(classifications)
    matched = candidate_terms(observed) & keywords_for(category)
    return VerificationVerdict(
        category=category,
        accepted=bool(matched),
        matched_labels=frozenset(matched),
        classifications=observed,
        rationale=_build_rationale(category, frozenset(matched), observed),
    )
