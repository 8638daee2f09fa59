"""
Trip Service.

Trip lifecycle (administrators) and the per-trip overview.
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tripledger.app.core.guards import access_policy
from tripledger.app.domain.settlement.netting import compute_settlements
from tripledger.app.models.dues import DuesGoal
from tripledger.app.models.enums import ChangeTable, TreasuryDirection
from tripledger.app.models.expense import Expense, ExpenseImage, ExpenseParticipant
from tripledger.app.models.participant import Participant
from tripledger.app.models.participant_account import ParticipantAccount
from tripledger.app.models.treasury import TreasuryTransaction, TripTreasuryAccount
from tripledger.app.models.trip import Trip
from tripledger.app.schemas.trip import TripCreate, TripSummaryResponse
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import commit
from tripledger.app.services.settlement_service import load_ledger_snapshot

logger = logging.getLogger("tripledger.trips")


def _require_admin(identity: Identity, action: str, trip_id: str = None):
    if not identity.is_admin:
        raise AuthorizationError(f"only an administrator may {action}", entity="trip", entity_id=trip_id)


class TripService:

    @staticmethod
    async def get(db: AsyncSession, trip_id: str) -> Trip:
        trip = await db.get(Trip, trip_id)
        if not trip:
            raise NotFoundError("trip", trip_id)
        return trip

    @staticmethod
    async def create(db: AsyncSession, identity: Identity, data: TripCreate) -> Trip:
        """
        Create a trip with its initial participants (admin only).

        Names are stripped; blank or duplicate names are rejected.
        """
        _require_admin(identity, "create trips")

        names = [name.strip() for name in data.participant_names]
        if any(not name for name in names):
            raise ValidationError("participant name must not be empty", entity="participant")
        if len(set(names)) != len(names):
            raise ValidationError("participant name already exists in this trip", entity="participant")

        trip = Trip(name=data.name.strip())
        db.add(trip)
        await db.flush()

        for name in names:
            db.add(Participant(trip_id=trip.id, name=name, is_treasurer=False, has_account=False))
        await commit(db)

        logger.info("Trip %s created with %d participants", trip.id, len(names))
        await change_notifier.publish(trip.id, ChangeTable.TRIPS)
        return trip

    @staticmethod
    async def list(db: AsyncSession, identity: Identity) -> List[Trip]:
        """Administrators see every trip; others the trips they joined."""
        query = select(Trip)
        if not identity.is_admin:
            query = query.join(Participant, Participant.trip_id == Trip.id).where(
                Participant.identity_id == identity.identity_id
            )
        query = query.order_by(Trip.created_at.desc(), Trip.id)

        result = await db.execute(query)
        return result.scalars().unique().all()

    @staticmethod
    async def rename(db: AsyncSession, identity: Identity, trip_id: str, name: str) -> Trip:
        _require_admin(identity, "rename trips", trip_id)
        trip = await TripService.get(db, trip_id)

        name = name.strip()
        if not name:
            raise ValidationError("trip name must not be empty", entity="trip", entity_id=trip_id)

        trip.name = name
        await commit(db)

        logger.info("Trip %s renamed", trip_id)
        await change_notifier.publish(trip_id, ChangeTable.TRIPS)
        return trip

    @staticmethod
    async def delete(db: AsyncSession, identity: Identity, trip_id: str) -> dict:
        """
        Delete a trip and every row scoped to it (admin only).

        Rows are removed child-first so the result does not depend on the
        database enforcing ON DELETE CASCADE. Audit entries are kept.
        """
        _require_admin(identity, "delete trips", trip_id)
        trip = await TripService.get(db, trip_id)

        expense_ids = select(Expense.id).where(Expense.trip_id == trip_id)
        participant_ids = select(Participant.id).where(Participant.trip_id == trip_id)

        for statement in (
            delete(ExpenseParticipant).where(ExpenseParticipant.expense_id.in_(expense_ids)),
            delete(ExpenseImage).where(ExpenseImage.expense_id.in_(expense_ids)),
            delete(TreasuryTransaction).where(TreasuryTransaction.trip_id == trip_id),
            delete(Expense).where(Expense.trip_id == trip_id),
            delete(DuesGoal).where(DuesGoal.trip_id == trip_id),
            delete(ParticipantAccount).where(ParticipantAccount.participant_id.in_(participant_ids)),
            delete(TripTreasuryAccount).where(TripTreasuryAccount.trip_id == trip_id),
            delete(Participant).where(Participant.trip_id == trip_id),
        ):
            await db.execute(statement.execution_options(synchronize_session=False))

        await db.delete(trip)
        await commit(db)

        logger.info("Trip %s deleted", trip_id)
        await change_notifier.publish(trip_id, ChangeTable.TRIPS)
        return {"status": "deleted", "trip_id": trip_id}

    @staticmethod
    async def summary(db: AsyncSession, ctx: SessionContext) -> TripSummaryResponse:
        """Overview figures computed from the active ledger."""
        access_policy.enforce_member(ctx)
        participants, expenses, transactions = await load_ledger_snapshot(db, ctx.trip_id)

        settlements = compute_settlements(participants, expenses)

        return TripSummaryResponse(
            trip_id=ctx.trip_id,
            participant_count=len(participants),
            expense_count=len(expenses),
            expense_total=sum(e.amount for e in expenses),
            treasury_received=sum(tx.amount for tx in transactions if tx.direction == TreasuryDirection.RECEIVE),
            treasury_sent=sum(tx.amount for tx in transactions if tx.direction == TreasuryDirection.SEND),
            settlement_count=sum(len(s.settlements) for s in settlements),
        )
