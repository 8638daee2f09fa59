"""
Dues Service.

Per-person collection goals and their progress.
"""

import logging
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.exceptions import ValidationError
from tripledger.app.core.guards import access_policy
from tripledger.app.domain.dues.tracker import DuesProgress, compute_dues_progress
from tripledger.app.domain.snapshot import DuesGoalSnapshot, ParticipantSnapshot, TreasurySnapshot
from tripledger.app.models.dues import DuesGoal
from tripledger.app.models.enums import AuditAction, AuditEntity, ChangeTable
from tripledger.app.models.mixins import generate_id
from tripledger.app.models.treasury import TreasuryTransaction
from tripledger.app.schemas.treasury import DuesGoalCreate
from tripledger.app.services import audit
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import (
    ACTIVE, ANY, DELETED, commit, get_scoped, get_trip_participants,
)

logger = logging.getLogger("tripledger.dues")

ENTITY = "dues_goal"


class DuesService:

    @staticmethod
    async def create(db: AsyncSession, ctx: SessionContext, data: DuesGoalCreate) -> DuesGoal:
        access_policy.enforce_treasurer(ctx, "create dues goals", ENTITY)
        if data.target_amount is None or data.target_amount <= 0:
            raise ValidationError("target amount must be positive", entity=ENTITY)

        goal = DuesGoal(
            id=generate_id(),
            trip_id=ctx.trip_id,
            title=data.title.strip(),
            due_date=data.due_date,
            target_amount=data.target_amount,
            is_deleted=False,
            revision=1,
        )
        db.add(goal)
        await db.flush()

        await audit.record(
            db, ctx, AuditEntity.DUES_GOAL, goal.id, AuditAction.CREATE,
            before=None, after=audit.entity_snapshot(AuditEntity.DUES_GOAL, goal)
        )
        await commit(db)

        logger.info("Dues goal %s created in trip %s", goal.id, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.DUES)
        return goal

    @staticmethod
    async def list(db: AsyncSession, ctx: SessionContext, include_deleted: bool = False) -> List[DuesGoal]:
        access_policy.enforce_member(ctx)

        query = select(DuesGoal).where(DuesGoal.trip_id == ctx.trip_id)
        if not include_deleted:
            query = query.where(DuesGoal.is_deleted == False)
        query = query.order_by(desc(DuesGoal.created_at), DuesGoal.id)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def delete(db: AsyncSession, ctx: SessionContext, goal_id: str) -> DuesGoal:
        access_policy.enforce_treasurer(ctx, "delete dues goals", ENTITY, goal_id)
        goal = await get_scoped(db, DuesGoal, ENTITY, ctx.trip_id, goal_id, ACTIVE)

        goal.mark_deleted(ctx.actor_id)
        await audit.record(
            db, ctx, AuditEntity.DUES_GOAL, goal.id, AuditAction.DELETE,
            before={"is_deleted": False}, after={"is_deleted": True}
        )
        await commit(db)

        logger.info("Dues goal %s soft-deleted", goal.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.DUES)
        return goal

    @staticmethod
    async def restore(db: AsyncSession, ctx: SessionContext, goal_id: str) -> DuesGoal:
        access_policy.enforce_treasurer(ctx, "restore dues goals", ENTITY, goal_id)
        goal = await get_scoped(db, DuesGoal, ENTITY, ctx.trip_id, goal_id, DELETED)

        goal.mark_restored()
        await audit.record(
            db, ctx, AuditEntity.DUES_GOAL, goal.id, AuditAction.RESTORE,
            before={"is_deleted": True}, after={"is_deleted": False}
        )
        await commit(db)

        logger.info("Dues goal %s restored", goal.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.DUES)
        return goal

    @staticmethod
    async def hard_delete(db: AsyncSession, ctx: SessionContext, goal_id: str) -> dict:
        """Permanently remove a goal (admin only); tagged receipts lose the tag."""
        access_policy.enforce_admin(ctx, "permanently delete dues goals", ENTITY, goal_id)
        goal = await get_scoped(db, DuesGoal, ENTITY, ctx.trip_id, goal_id, ANY)

        await audit.record(
            db, ctx, AuditEntity.DUES_GOAL, goal.id, AuditAction.DELETE,
            before=audit.entity_snapshot(AuditEntity.DUES_GOAL, goal), after={"hard_deleted": True}
        )
        result = await db.execute(
            select(TreasuryTransaction).where(TreasuryTransaction.due_id == goal.id)
        )
        receipts = result.scalars().all()
        for tx in receipts:
            await audit.clear_reference(db, ctx, AuditEntity.TREASURY_TRANSACTION, tx, "due_id")
        await db.delete(goal)
        await commit(db)

        logger.info("Dues goal %s hard-deleted", goal_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.DUES)
        if receipts:
            await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return {"status": "deleted", "goal_id": goal_id}

    @staticmethod
    async def _progress_inputs(db: AsyncSession, trip_id: str):
        participants = [
            ParticipantSnapshot(id=p.id, name=p.name) for p in await get_trip_participants(db, trip_id)
        ]
        result = await db.execute(
            select(TreasuryTransaction).where(
                TreasuryTransaction.trip_id == trip_id,
                TreasuryTransaction.is_deleted == False,
                TreasuryTransaction.due_id.is_not(None)
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
        return participants, transactions

    @staticmethod
    async def progress(db: AsyncSession, ctx: SessionContext, goal_id: str) -> DuesProgress:
        access_policy.enforce_member(ctx)
        goal = await get_scoped(db, DuesGoal, ENTITY, ctx.trip_id, goal_id, ACTIVE)
        participants, transactions = await DuesService._progress_inputs(db, ctx.trip_id)

        return compute_dues_progress(
            DuesGoalSnapshot(id=goal.id, title=goal.title, target_amount=goal.target_amount),
            participants,
            transactions
        )

    @staticmethod
    async def list_progress(db: AsyncSession, ctx: SessionContext) -> List[DuesProgress]:
        """Progress of every active goal, newest goal first."""
        goals = await DuesService.list(db, ctx)
        participants, transactions = await DuesService._progress_inputs(db, ctx.trip_id)

        return [
            compute_dues_progress(
                DuesGoalSnapshot(id=goal.id, title=goal.title, target_amount=goal.target_amount),
                participants,
                transactions
            )
            for goal in goals
        ]
