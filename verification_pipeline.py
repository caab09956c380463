"""Classifier -> judge -> ledger chain for a single photo submission."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from action_types import ActionCategory
from action_verifier import VerificationVerdict, verify
from credit_ledger import ActionDetails, CreditLedger, LedgerEntry
from image_classifier import (
    ClassificationResult,
    ImageInput,
    InferenceFailed,
    LabelClassifier,
    MobileNetClassifier,
    ModelUnavailable,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationOutcome:
    verdict: VerificationVerdict
    balance: int
    entry: Optional[LedgerEntry] = None

    @property
    def accepted(self) -> bool:
        return self.verdict.accepted


class VerificationPipeline:
    """Runs one verification per submission against a shared classifier.

    Only ``classify`` suspends. Judging and the ledger update happen
    synchronously on the resuming task, so a submission cancelled while
    inference is in flight never reaches the ledger; the worker's late result
    is discarded.
    """

    def __init__(self, classifier: LabelClassifier, ledger: Optional[CreditLedger] = None) -> None:
        self.classifier = classifier
        self.ledger = ledger if ledger is not None else CreditLedger()

    async def _classify(self, image: ImageInput) -> List[ClassificationResult]:
        try:
            return list(await self.classifier.classify(image))
        except InferenceFailed as error:
            logger.warning("Inference failed, continuing with no classifications: %s", error)
            return []

    async def submit(
        self,
        image: ImageInput,
        category: ActionCategory,
        details: Optional[ActionDetails] = None,
    ) -> VerificationOutcome:
        classifications = await self._classify(image)

        verdict = verify(classifications, category)
        balance, entry = self.ledger.apply(verdict, category, details)
        logger.info(
            "Verified %s submission: accepted=%s matched=%s",
            category.display_name,
            verdict.accepted,
            sorted(verdict.matched_labels),
        )
        return VerificationOutcome(verdict=verdict, balance=balance, entry=entry)

    def start(
        self,
        image: ImageInput,
        category: ActionCategory,
        details: Optional[ActionDetails] = None,
    ) -> "asyncio.Task[VerificationOutcome]":
        """Schedule ``submit`` on the running loop and return a cancellable task."""
        return asyncio.get_running_loop().create_task(self.submit(image, category, details))


def load_classifier() -> LabelClassifier:
    """Load the bundled model once.

    ``ModelUnavailable`` propagates: the caller should treat verification as
    permanently unavailable rather than retrying per submission.
    """
    try:
        return MobileNetClassifier.load()
    except ModelUnavailable:
        logger.exception("Label classifier could not be loaded")
        raise


def build_pipeline(ledger: Optional[CreditLedger] = None) -> VerificationPipeline:
    """Load the bundled model and wire it to a (new or given) ledger."""
    return VerificationPipeline(load_classifier(), ledger)


def verify_image_sync(
    pipeline: VerificationPipeline,
    image: ImageInput,
    category: ActionCategory,
    details: Optional[ActionDetails] = None,
) -> VerificationOutcome:
    """Run a submission to completion from synchronous code."""
    return asyncio.run(pipeline.submit(image, category, details))
