"""
Netting Engine (Domain Logic).

Turns shared-expense and collective-fund records into who-owes-whom figures.
All functions are pure: they read snapshots and return new values.

Two independent views are produced:

1. Personal settlements: a directed per-pair ledger of debts
   (``debt[debtor][creditor]``). Reverse-direction debts between the same two
   people are NOT netted against each other.
2. Net balances: one signed figure per participant relative to the
   collective fund, partitioned into payers and receivers so the treasurer
   can settle in bulk.

Rounding happens only at the output boundary. Per-pair rounding can make
group totals drift by one unit; that drift is not reconciled.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from tripledger.app.core.config import settings
from tripledger.app.domain.snapshot import (
    ExpenseSnapshot,
    ParticipantSnapshot,
    TreasurySnapshot,
    round_half_up,
)
from tripledger.app.models.enums import TreasuryDirection


@dataclass
class SettlementLine:
    to_id: str
    to_name: str
    amount: int


@dataclass
class PersonalSettlement:
    person_id: str
    person_name: str
    settlements: List[SettlementLine] = field(default_factory=list)
    total_amount: int = 0


@dataclass
class NetBalance:
    participant_id: str
    participant_name: str
    balance: int


@dataclass
class NetBalanceReport:
    payers: List[NetBalance] = field(default_factory=list)
    receivers: List[NetBalance] = field(default_factory=list)

    @property
    def total_to_collect(self) -> int:
        return -sum(b.balance for b in self.payers)

    @property
    def total_to_pay_out(self) -> int:
        return sum(b.balance for b in self.receivers)


def accumulate_debts(expenses: Iterable[ExpenseSnapshot]) -> Dict[str, Dict[str, float]]:
    """
    Build the directed debt ledger ``debtor -> creditor -> amount``.

    Amounts stay in floating point.
    """
    debts: Dict[str, Dict[str, float]] = {}

    for expense in expenses:
        share = expense.share
        for participant_id in expense.participant_ids:
            if participant_id == expense.payer_id:
                continue
            owed = debts.setdefault(participant_id, {})
            owed[expense.payer_id] = owed.get(expense.payer_id, 0.0) + share

    return debts


def compute_settlements(
    participants: Sequence[ParticipantSnapshot],
    expenses: Iterable[ExpenseSnapshot],
    threshold: float = None,
) -> List[PersonalSettlement]:
    """
    Compute pairwise personal settlements.

    Args:
        participants: Trip participants (output follows this order)
        expenses: Active expenses with non-empty share sets
        threshold: Debts at or below this are ignored (default: settings.settlement_threshold)

    Returns:
        One PersonalSettlement per participant with at least one creditor line.
        Lines whose rounded amount is 0 are dropped.
    """
    if threshold is None:
        threshold = settings.settlement_threshold

    names = {p.id: p.name for p in participants}
    debts = accumulate_debts(expenses)

    results: List[PersonalSettlement] = []
    for person in participants:
        lines: List[SettlementLine] = []
        for creditor_id, amount in debts.get(person.id, {}).items():
            if amount <= threshold:
                continue
            rounded = round_half_up(amount)
            if rounded <= 0:
                continue
            lines.append(SettlementLine(
                to_id=creditor_id,
                to_name=names.get(creditor_id, creditor_id),
                amount=rounded
            ))

        if lines:
            results.append(PersonalSettlement(
                person_id=person.id,
                person_name=person.name,
                settlements=lines,
                total_amount=sum(line.amount for line in lines)
            ))

    return results


def accumulate_balances(
    participants: Sequence[ParticipantSnapshot],
    expenses: Iterable[ExpenseSnapshot],
    treasury_transactions: Iterable[TreasurySnapshot] = (),
) -> Dict[str, float]:
    """
    Signed, unrounded balance per participant.

    Positive: the fund owes them. Negative: they still owe the fund.
    """
    balances: Dict[str, float] = {p.id: 0.0 for p in participants}

    for expense in expenses:
        share = expense.share
        balances[expense.payer_id] = balances.get(expense.payer_id, 0.0) + expense.amount
        for participant_id in expense.participant_ids:
            balances[participant_id] = balances.get(participant_id, 0.0) - share

    for tx in treasury_transactions:
        if tx.counterparty_id is None:
            continue
        if tx.direction == TreasuryDirection.RECEIVE:
            balances[tx.counterparty_id] = balances.get(tx.counterparty_id, 0.0) + tx.amount
        else:
            balances[tx.counterparty_id] = balances.get(tx.counterparty_id, 0.0) - tx.amount

    return balances


def compute_net_balances(
    participants: Sequence[ParticipantSnapshot],
    expenses: Iterable[ExpenseSnapshot],
    treasury_transactions: Iterable[TreasurySnapshot] = (),
) -> NetBalanceReport:
    """
    Compute treasury-relative net balances.

    Returns:
        NetBalanceReport with payers (negative balance, most owed first) and
        receivers (positive balance, largest first). Zero balances are excluded.
    """
    balances = accumulate_balances(participants, expenses, treasury_transactions)
    report = NetBalanceReport()

    for person in participants:
        rounded = round_half_up(balances.get(person.id, 0.0))
        if rounded < 0:
            report.payers.append(NetBalance(person.id, person.name, rounded))
        elif rounded > 0:
            report.receivers.append(NetBalance(person.id, person.name, rounded))

    report.payers.sort(key=lambda b: b.balance)
    report.receivers.sort(key=lambda b: -b.balance)
    return report
