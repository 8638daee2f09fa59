"""
Settlement Service.

Loads a fresh ledger snapshot on every call and hands it to the netting engine.
"""

from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.guards import access_policy
from tripledger.app.domain.settlement.netting import (
    NetBalanceReport, PersonalSettlement, compute_net_balances, compute_settlements,
)
from tripledger.app.domain.snapshot import ExpenseSnapshot, ParticipantSnapshot, TreasurySnapshot
from tripledger.app.models.expense import Expense
from tripledger.app.models.treasury import TreasuryTransaction
from tripledger.app.services.ledger_common import get_trip_participants

LedgerSnapshot = Tuple[List[ParticipantSnapshot], List[ExpenseSnapshot], List[TreasurySnapshot]]


async def load_ledger_snapshot(db: AsyncSession, trip_id: str) -> LedgerSnapshot:
    """Participants, active expenses and active treasury transactions of a trip."""
    participants = [
        ParticipantSnapshot(id=p.id, name=p.name) for p in await get_trip_participants(db, trip_id)
    ]

    result = await db.execute(
        select(Expense).where(Expense.trip_id == trip_id, Expense.is_deleted == False)
    )
    expenses = [
        ExpenseSnapshot(
            id=e.id,
            payer_id=e.payer_id,
            amount=e.amount,
            participant_ids=tuple(e.participant_ids)
        )
        for e in result.scalars().all()
        if e.payer_id is not None and e.participant_links
    ]

    result = await db.execute(
        select(TreasuryTransaction).where(
            TreasuryTransaction.trip_id == trip_id,
            TreasuryTransaction.is_deleted == False
        )
    )
    transactions = [
        TreasurySnapshot(
            id=tx.id,
            direction=tx.direction,
            counterparty_id=tx.counterparty_id,
            amount=tx.amount,
            due_id=tx.due_id
        )
        for tx in result.scalars().all()
    ]

    return participants, expenses, transactions


class SettlementService:

    @staticmethod
    async def personal_settlements(db: AsyncSession, ctx: SessionContext) -> List[PersonalSettlement]:
        access_policy.enforce_member(ctx)
        participants, expenses, _ = await load_ledger_snapshot(db, ctx.trip_id)
        return compute_settlements(participants, expenses)

    @staticmethod
    async def net_balances(db: AsyncSession, ctx: SessionContext) -> NetBalanceReport:
        access_policy.enforce_member(ctx)
        participants, expenses, transactions = await load_ledger_snapshot(db, ctx.trip_id)
        return compute_net_balances(participants, expenses, transactions)
