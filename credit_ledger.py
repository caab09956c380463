"""Session-scoped credit balance and history of verified actions."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from action_types import ActionCategory
from action_verifier import VerificationVerdict

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ActionDetails:
    """Optional context a user attaches to a submitted action."""

    description: str = ""
    location: str = ""
    people_involved: str = ""
    inspiration: str = ""
    performed_on: Optional[date] = None


@dataclass(frozen=True)
class LedgerEntry:
    category: ActionCategory
    timestamp: datetime
    credits_awarded: int
    verdict: VerificationVerdict
    details: Optional[ActionDetails] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.display_name,
            "timestamp": self.timestamp.isoformat(),
            "credits_awarded": self.credits_awarded,
            "matched_labels": sorted(self.verdict.matched_labels),
            "description": self.details.description if self.details else "",
        }


@dataclass
class CreditLedger:
    """Running balance plus the append-only list of accepted actions.

    ``apply`` is serialized so concurrent verifications cannot lose updates.
    The balance always equals the sum of ``credits_awarded`` over ``entries``.
    """

    clock: Callable[[], datetime] = _utc_now
    _balance: int = field(default=0, init=False)
    _entries: List[LedgerEntry] = field(default_factory=list, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def entries(self) -> Tuple[LedgerEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def apply(
        self,
        verdict: VerificationVerdict,
        category: ActionCategory,
        details: Optional[ActionDetails] = None,
    ) -> Tuple[int, Optional[LedgerEntry]]:
        """Record an accepted verdict; rejected verdicts leave the ledger untouched."""
        with self._lock:
            if not verdict.accepted:
                return self._balance, None

            entry = LedgerEntry(
                category=category,
                timestamp=self.clock(),
                credits_awarded=category.credit_value,
                verdict=verdict,
                details=details,
            )
            self._entries.append(entry)
            self._balance += entry.credits_awarded
            logger.info(
                "Awarded %d credits for %s (balance=%d)",
                entry.credits_awarded,
                category.display_name,
                self._balance,
            )
            return self._balance, entry

    def credits_by_category(self) -> Dict[ActionCategory, int]:
        """Total credits earned per category, including zero for untouched ones."""
        totals: Dict[ActionCategory, int] = {category: 0 for category in ActionCategory}
        for entry in self.entries:
            totals[entry.category] += entry.credits_awarded
        return totals
