"""
Dues Tracker (Domain Logic).

Derives per-goal collection progress from ``receive`` treasury transactions
explicitly tagged with the goal. Amounts never carry over between goals.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from tripledger.app.domain.snapshot import DuesGoalSnapshot, ParticipantSnapshot, TreasurySnapshot
from tripledger.app.models.enums import TreasuryDirection


@dataclass
class ParticipantDuesStatus:
    participant_id: str
    participant_name: str
    paid: int
    fully_paid: bool


@dataclass
class DuesProgress:
    goal_id: str
    title: str
    target_amount: int
    participant_count: int
    total_target: int
    received: int
    remaining: int
    surplus: int
    paid: Dict[str, int] = field(default_factory=dict)
    participants: List[ParticipantDuesStatus] = field(default_factory=list)

    @property
    def fully_paid_ids(self) -> List[str]:
        return [status.participant_id for status in self.participants if status.fully_paid]


def compute_dues_progress(
    goal: DuesGoalSnapshot,
    participants: Sequence[ParticipantSnapshot],
    transactions: Iterable[TreasurySnapshot],
) -> DuesProgress:
    """
    Compute collection progress for one dues goal.

    Invariant: received + remaining - surplus == total_target, remaining >= 0.

    Args:
        goal: The dues goal
        participants: Current trip participants (sets the participant count)
        transactions: Active treasury transactions of the trip

    Returns:
        DuesProgress with per-participant completion
    """
    received = 0
    paid: Dict[str, int] = {}

    for tx in transactions:
        if tx.direction != TreasuryDirection.RECEIVE or tx.due_id != goal.id:
            continue
        received += tx.amount
        if tx.counterparty_id is not None:
            paid[tx.counterparty_id] = paid.get(tx.counterparty_id, 0) + tx.amount

    total_target = goal.target_amount * len(participants)
    remaining = max(total_target - received, 0)
    surplus = max(received - total_target, 0)

    statuses = [
        ParticipantDuesStatus(
            participant_id=p.id,
            participant_name=p.name,
            paid=paid.get(p.id, 0),
            fully_paid=paid.get(p.id, 0) >= goal.target_amount
        )
        for p in participants
    ]

    return DuesProgress(
        goal_id=goal.id,
        title=goal.title,
        target_amount=goal.target_amount,
        participant_count=len(participants),
        total_target=total_target,
        received=received,
        remaining=remaining,
        surplus=surplus,
        paid=paid,
        participants=statuses
    )
