"""
Treasury Service (Ledger Store).

Movements of the collective fund: receipts from and payouts to participants,
optionally tagged with a dues goal. Writes are treasurer-only and audited.
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.exceptions import ValidationError
from tripledger.app.core.guards import access_policy
from tripledger.app.models.dues import DuesGoal
from tripledger.app.models.enums import AuditAction, AuditEntity, ChangeTable, TreasuryDirection
from tripledger.app.models.mixins import generate_id
from tripledger.app.models.treasury import TreasuryTransaction
from tripledger.app.schemas.treasury import (
    DuesReceiptsCreate, TreasuryTotalsResponse, TreasuryTransactionCreate,
)
from tripledger.app.services import audit
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import (
    ACTIVE, ANY, DELETED, commit, get_scoped, get_trip_participants,
)

logger = logging.getLogger("tripledger.treasury")

ENTITY = "treasury_transaction"


class TreasuryService:

    @staticmethod
    async def _validate(
        db: AsyncSession,
        ctx: SessionContext,
        direction: TreasuryDirection,
        counterparty_ids: List[str],
        amount: int,
        due_id: Optional[str],
    ) -> Optional[DuesGoal]:
        if amount is None or amount <= 0:
            raise ValidationError("amount must be positive", entity=ENTITY)
        if not counterparty_ids:
            raise ValidationError("transaction needs a counterparty", entity=ENTITY)

        trip_participant_ids = {p.id for p in await get_trip_participants(db, ctx.trip_id)}
        if not set(counterparty_ids) <= trip_participant_ids:
            raise ValidationError("counterparty does not belong to the trip", entity=ENTITY)

        if due_id is None:
            return None
        if direction != TreasuryDirection.RECEIVE:
            raise ValidationError("only receive transactions can be tagged with a dues goal", entity=ENTITY)

        result = await db.execute(
            select(DuesGoal).where(
                DuesGoal.id == due_id,
                DuesGoal.trip_id == ctx.trip_id,
                DuesGoal.is_deleted == False
            )
        )
        goal = result.scalar_one_or_none()
        if goal is None:
            raise ValidationError("dues goal does not exist or is deleted", entity="dues_goal", entity_id=due_id)
        return goal

    @staticmethod
    def _new_transaction(
        ctx: SessionContext,
        direction: TreasuryDirection,
        counterparty_id: str,
        amount: int,
        memo: Optional[str],
        due_id: Optional[str],
    ) -> TreasuryTransaction:
        return TreasuryTransaction(
            id=generate_id(),
            trip_id=ctx.trip_id,
            treasurer_id=ctx.actor_id,
            direction=direction,
            counterparty_id=counterparty_id,
            amount=amount,
            memo=memo,
            due_id=due_id,
            is_deleted=False,
            revision=1,
        )

    @staticmethod
    async def record(db: AsyncSession, ctx: SessionContext, data: TreasuryTransactionCreate) -> TreasuryTransaction:
        """Record a receive or send movement (treasurer only)."""
        access_policy.enforce_treasurer(ctx, "record treasury transactions", ENTITY)
        await TreasuryService._validate(db, ctx, data.direction, [data.counterparty_id], data.amount, data.due_id)

        tx = TreasuryService._new_transaction(
            ctx, data.direction, data.counterparty_id, data.amount, data.memo, data.due_id
        )
        db.add(tx)
        await db.flush()

        await audit.record(
            db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.CREATE,
            before=None, after=audit.entity_snapshot(AuditEntity.TREASURY_TRANSACTION, tx)
        )
        await commit(db)

        logger.info("Treasury %s of %s recorded in trip %s", tx.direction.value, tx.amount, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return tx

    @staticmethod
    async def record_dues_receipts(
        db: AsyncSession, ctx: SessionContext, data: DuesReceiptsCreate
    ) -> List[TreasuryTransaction]:
        """
        Record one ``receive`` per counterparty for the same goal and amount.

        All receipts and their audit entries commit together.
        """
        access_policy.enforce_treasurer(ctx, "record treasury transactions", ENTITY)
        counterparty_ids = list(dict.fromkeys(data.counterparty_ids))
        goal = await TreasuryService._validate(
            db, ctx, TreasuryDirection.RECEIVE, counterparty_ids, data.amount, data.due_id
        )
        memo = data.memo or f"Dues - {goal.title}"

        transactions = []
        for counterparty_id in counterparty_ids:
            tx = TreasuryService._new_transaction(
                ctx, TreasuryDirection.RECEIVE, counterparty_id, data.amount, memo, goal.id
            )
            db.add(tx)
            transactions.append(tx)
        await db.flush()

        for tx in transactions:
            await audit.record(
                db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.CREATE,
                before=None, after=audit.entity_snapshot(AuditEntity.TREASURY_TRANSACTION, tx)
            )
        await commit(db)

        logger.info("%d dues receipts recorded for goal %s", len(transactions), goal.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return transactions

    @staticmethod
    async def list(db: AsyncSession, ctx: SessionContext, include_deleted: bool = False) -> List[TreasuryTransaction]:
        access_policy.enforce_member(ctx)

        query = select(TreasuryTransaction).where(TreasuryTransaction.trip_id == ctx.trip_id)
        if not include_deleted:
            query = query.where(TreasuryTransaction.is_deleted == False)
        query = query.order_by(desc(TreasuryTransaction.created_at), TreasuryTransaction.id)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def delete(db: AsyncSession, ctx: SessionContext, transaction_id: str) -> TreasuryTransaction:
        access_policy.enforce_treasurer(ctx, "delete treasury transactions", ENTITY, transaction_id)
        tx = await get_scoped(db, TreasuryTransaction, ENTITY, ctx.trip_id, transaction_id, ACTIVE)

        tx.mark_deleted(ctx.actor_id)
        await audit.record(
            db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.DELETE,
            before={"is_deleted": False}, after={"is_deleted": True}
        )
        await commit(db)

        logger.info("Treasury transaction %s soft-deleted", tx.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return tx

    @staticmethod
    async def restore(db: AsyncSession, ctx: SessionContext, transaction_id: str) -> TreasuryTransaction:
        access_policy.enforce_treasurer(ctx, "restore treasury transactions", ENTITY, transaction_id)
        tx = await get_scoped(db, TreasuryTransaction, ENTITY, ctx.trip_id, transaction_id, DELETED)

        if tx.counterparty_id is None:
            raise ValidationError("transaction references a removed participant", entity=ENTITY, entity_id=tx.id)

        tx.mark_restored()
        await audit.record(
            db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.RESTORE,
            before={"is_deleted": True}, after={"is_deleted": False}
        )
        await commit(db)

        logger.info("Treasury transaction %s restored", tx.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return tx

    @staticmethod
    async def hard_delete(db: AsyncSession, ctx: SessionContext, transaction_id: str) -> dict:
        access_policy.enforce_admin(ctx, "permanently delete treasury transactions", ENTITY, transaction_id)
        tx = await get_scoped(db, TreasuryTransaction, ENTITY, ctx.trip_id, transaction_id, ANY)

        await audit.record(
            db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.DELETE,
            before=audit.entity_snapshot(AuditEntity.TREASURY_TRANSACTION, tx), after={"hard_deleted": True}
        )
        await db.delete(tx)
        await commit(db)

        logger.info("Treasury transaction %s hard-deleted", transaction_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return {"status": "deleted", "transaction_id": transaction_id}

    @staticmethod
    async def totals(db: AsyncSession, ctx: SessionContext) -> TreasuryTotalsResponse:
        """Receive/send sums over active transactions and the resulting fund balance."""
        access_policy.enforce_member(ctx)

        result = await db.execute(
            select(TreasuryTransaction.direction, func.sum(TreasuryTransaction.amount))
            .where(TreasuryTransaction.trip_id == ctx.trip_id, TreasuryTransaction.is_deleted == False)
            .group_by(TreasuryTransaction.direction)
        )
        sums = {TreasuryDirection(direction): int(total or 0) for direction, total in result.all()}

        received = sums.get(TreasuryDirection.RECEIVE, 0)
        sent = sums.get(TreasuryDirection.SEND, 0)
        return TreasuryTotalsResponse(received=received, sent=sent, balance=received - sent)
