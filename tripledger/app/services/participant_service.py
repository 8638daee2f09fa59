"""
Participant Service.

Membership management, treasurer toggling and identity claims.
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from tripledger.app.core.guards import access_policy
from tripledger.app.models.enums import AuditAction, AuditEntity, ChangeTable
from tripledger.app.models.expense import Expense
from tripledger.app.models.participant import Participant
from tripledger.app.models.participant_account import ParticipantAccount
from tripledger.app.models.treasury import TreasuryTransaction
from tripledger.app.services import audit
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import commit, get_trip_participants

logger = logging.getLogger("tripledger.participants")


class ParticipantService:

    @staticmethod
    async def get(db: AsyncSession, trip_id: str, participant_id: str) -> Participant:
        result = await db.execute(
            select(Participant).where(Participant.id == participant_id, Participant.trip_id == trip_id)
        )
        participant = result.scalar_one_or_none()
        if not participant:
            raise NotFoundError("participant", participant_id)
        return participant

    @staticmethod
    async def list(db: AsyncSession, ctx: SessionContext) -> List[Participant]:
        access_policy.enforce_member(ctx)
        return await get_trip_participants(db, ctx.trip_id)

    @staticmethod
    async def _ensure_unique_name(db: AsyncSession, trip_id: str, name: str):
        result = await db.execute(
            select(Participant.id).where(Participant.trip_id == trip_id, Participant.name == name)
        )
        if result.first():
            raise ValidationError("participant name already exists in this trip", entity="participant")

    @staticmethod
    async def add(db: AsyncSession, ctx: SessionContext, name: str) -> Participant:
        """Add a participant (any member, or an administrator)."""
        access_policy.enforce_member_or_admin(ctx, "add participants")

        name = name.strip()
        if not name:
            raise ValidationError("participant name must not be empty", entity="participant")
        await ParticipantService._ensure_unique_name(db, ctx.trip_id, name)

        participant = Participant(trip_id=ctx.trip_id, name=name, is_treasurer=False, has_account=False)
        db.add(participant)
        await commit(db)

        logger.info("Participant %s added to trip %s", participant.id, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.PARTICIPANTS)
        return participant

    @staticmethod
    async def remove(db: AsyncSession, ctx: SessionContext, participant_id: str) -> dict:
        """
        Remove a participant.

        Requires treasurer or admin, at least two remaining participants, and no
        active expense referencing the participant. Soft-deleted expenses drop
        their reference to the participant (share link removed, payer cleared)
        and treasury transactions lose their counterparty; each of those edits
        is audited in the same commit as the removal.
        """
        access_policy.enforce_treasurer_or_admin(ctx, "remove participants", "participant", participant_id)
        participant = await ParticipantService.get(db, ctx.trip_id, participant_id)

        participants = await get_trip_participants(db, ctx.trip_id)

        result = await db.execute(select(Expense).where(Expense.trip_id == ctx.trip_id))
        expenses = result.scalars().all()
        active_expenses = [e for e in expenses if not e.is_deleted]

        access_policy.enforce_participant_removal(
            participant_id=participant.id,
            participant_count=len(participants),
            active_payer_ids=[e.payer_id for e in active_expenses],
            active_share_ids=[pid for e in active_expenses for pid in e.participant_ids],
        )

        touched_expenses = 0
        for expense in expenses:
            if not expense.is_deleted:
                continue
            old_share_ids = list(expense.participant_ids)
            if participant.id in old_share_ids:
                for link in [link for link in expense.participant_links if link.participant_id == participant.id]:
                    expense.participant_links.remove(link)
                expense.revision += 1
                await audit.record(
                    db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.PARTICIPANTS_UPDATE,
                    before={"participant_ids": old_share_ids},
                    after={"participant_ids": [pid for pid in old_share_ids if pid != participant.id]}
                )
                touched_expenses += 1
            if expense.payer_id == participant.id:
                await audit.clear_reference(db, ctx, AuditEntity.EXPENSE, expense, "payer_id")
                touched_expenses += 1

        result = await db.execute(
            select(TreasuryTransaction).where(
                TreasuryTransaction.trip_id == ctx.trip_id,
                TreasuryTransaction.counterparty_id == participant.id
            )
        )
        transactions = result.scalars().all()
        for tx in transactions:
            await audit.clear_reference(db, ctx, AuditEntity.TREASURY_TRANSACTION, tx, "counterparty_id")

        await db.execute(
            delete(ParticipantAccount)
            .where(ParticipantAccount.participant_id == participant.id)
            .execution_options(synchronize_session=False)
        )

        await db.delete(participant)
        await commit(db)

        logger.info(
            "Participant %s removed from trip %s (%d expense edits, %d transactions detached)",
            participant_id, ctx.trip_id, touched_expenses, len(transactions)
        )
        await change_notifier.publish(ctx.trip_id, ChangeTable.PARTICIPANTS)
        if touched_expenses:
            await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        if transactions:
            await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return {"status": "participant_removed", "participant_id": participant_id}

    @staticmethod
    async def set_treasurer(db: AsyncSession, ctx: SessionContext, participant_id: str, is_treasurer: bool) -> Participant:
        """Toggle the treasurer capability (admin only)."""
        access_policy.enforce_admin(ctx, "change treasurer status", "participant", participant_id)
        participant = await ParticipantService.get(db, ctx.trip_id, participant_id)

        participant.is_treasurer = is_treasurer
        await commit(db)

        logger.info("Participant %s treasurer=%s (trip %s)", participant_id, is_treasurer, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.PARTICIPANTS)
        return participant

    @staticmethod
    async def claim(db: AsyncSession, trip_id: str, participant_id: str, identity: Identity) -> Participant:
        """
        Link ``identity`` to an unclaimed participant.

        Re-claiming by the same identity is a no-op.

        Raises:
            ConflictError if another identity holds the participant, or the
            identity already claimed a different participant in the trip
        """
        participant = await ParticipantService.get(db, trip_id, participant_id)

        if participant.identity_id == identity.identity_id:
            return participant
        if participant.identity_id is not None:
            raise ConflictError(
                "participant is already claimed by another identity",
                entity="participant",
                entity_id=participant_id
            )

        result = await db.execute(
            select(Participant.id).where(
                Participant.trip_id == trip_id,
                Participant.identity_id == identity.identity_id
            )
        )
        if result.first():
            raise ConflictError(
                "identity already claimed a participant in this trip",
                entity="participant",
                entity_id=participant_id
            )

        participant.identity_id = identity.identity_id
        await commit(db)

        logger.info("Participant %s claimed (trip %s)", participant_id, trip_id)
        await change_notifier.publish(trip_id, ChangeTable.PARTICIPANTS)
        return participant
