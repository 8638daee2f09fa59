"""
In-memory ledger snapshots consumed by the read-side computations.

Snapshots are plain frozen dataclasses so the netting engine and the dues
tracker never touch a database session.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ParticipantSnapshot:
    id: str
    name: str


@dataclass(frozen=True)
class ExpenseSnapshot:
    id: str
    payer_id: str
    amount: int
    participant_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def share(self) -> float:
        """Exact (unrounded) per-participant share."""
        return self.amount / len(self.participant_ids)


@dataclass(frozen=True)
class TreasurySnapshot:
    id: str
    direction: str
    counterparty_id: Optional[str]
    amount: int
    due_id: Optional[str] = None


@dataclass(frozen=True)
class DuesGoalSnapshot:
    id: str
    title: str
    target_amount: int


def round_half_up(value: float) -> int:
    """Round to the nearest whole currency unit, halves away from negative infinity."""
    return int(math.floor(value + 0.5))
