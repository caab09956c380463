"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timezone
from typing import List, Sequence

import pytest

from credit_ledger import CreditLedger
from image_classifier import ClassificationResult, InferenceFailed, LabelClassifier

FIXED_TIME = datetime(2024, 10, 21, 12, 0, tzinfo=timezone.utc)


def results(*pairs) -> List[ClassificationResult]:
    """Build classification results from (label, confidence) pairs."""
    return [ClassificationResult(label=label, confidence=confidence) for label, confidence in pairs]


class StubClassifier(LabelClassifier):
    """Returns a canned classification sequence without running a model."""

    def __init__(self, canned: Sequence[ClassificationResult] = (), delay: float = 0.0):
        self.canned = list(canned)
        self.delay = delay
        self.calls = 0

    async def classify(self, image):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.canned)


class FailingClassifier(LabelClassifier):
    """Simulates an inference error for every image."""

    async def classify(self, image):
        raise InferenceFailed("simulated inference error")


@pytest.fixture
def ledger():
    """Provide an empty ledger with a fixed clock."""
    return CreditLedger(clock=lambda: FIXED_TIME)
