"""
Account Service.

Bank-account metadata of participants (for reimbursements) and of the trip's
collective fund (for dues payments).
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.exceptions import AuthorizationError, NotFoundError
from tripledger.app.core.guards import access_policy
from tripledger.app.models.enums import ChangeTable
from tripledger.app.models.participant import Participant
from tripledger.app.models.participant_account import ParticipantAccount
from tripledger.app.models.treasury import TripTreasuryAccount
from tripledger.app.schemas.account import ParticipantAccountUpsert, TripTreasuryAccountUpsert
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import commit
from tripledger.app.services.participant_service import ParticipantService

logger = logging.getLogger("tripledger.accounts")


def can_view_account(ctx: SessionContext, account: ParticipantAccount) -> bool:
    """Public accounts are visible to members; private ones to the owner, treasurers and admins."""
    if account.is_public or ctx.is_treasurer or ctx.is_admin:
        return True
    return ctx.participant_id == account.participant_id


class AccountService:

    @staticmethod
    async def upsert_participant_account(
        db: AsyncSession, ctx: SessionContext, participant_id: str, data: ParticipantAccountUpsert
    ) -> ParticipantAccount:
        """Create or replace a participant's account (the participant or an admin)."""
        if not (ctx.is_admin or ctx.participant_id == participant_id):
            raise AuthorizationError(
                "only the participant or an administrator may set this account",
                entity="participant_account",
                entity_id=participant_id
            )
        participant = await ParticipantService.get(db, ctx.trip_id, participant_id)

        result = await db.execute(
            select(ParticipantAccount).where(ParticipantAccount.participant_id == participant.id)
        )
        account = result.scalar_one_or_none()
        if account is None:
            account = ParticipantAccount(participant_id=participant.id)
            db.add(account)

        account.bank_name = data.bank_name
        account.account_number = data.account_number
        account.account_holder = data.account_holder
        account.is_public = data.is_public
        participant.has_account = True
        await commit(db)
        await db.refresh(account)

        logger.info("Account of participant %s saved (public=%s)", participant.id, account.is_public)
        await change_notifier.publish(ctx.trip_id, ChangeTable.PARTICIPANT_ACCOUNTS)
        await change_notifier.publish(ctx.trip_id, ChangeTable.PARTICIPANTS)
        return account

    @staticmethod
    async def get_participant_account(
        db: AsyncSession, ctx: SessionContext, participant_id: str
    ) -> ParticipantAccount:
        access_policy.enforce_member(ctx)
        participant = await ParticipantService.get(db, ctx.trip_id, participant_id)

        result = await db.execute(
            select(ParticipantAccount).where(ParticipantAccount.participant_id == participant.id)
        )
        account = result.scalar_one_or_none()
        # Hidden accounts look missing
        if account is None or not can_view_account(ctx, account):
            raise NotFoundError("participant_account", participant_id)
        return account

    @staticmethod
    async def list_participant_accounts(db: AsyncSession, ctx: SessionContext) -> List[ParticipantAccount]:
        access_policy.enforce_member(ctx)

        result = await db.execute(
            select(ParticipantAccount)
            .join(Participant, Participant.id == ParticipantAccount.participant_id)
            .where(Participant.trip_id == ctx.trip_id)
            .order_by(Participant.name)
        )
        return [account for account in result.scalars().all() if can_view_account(ctx, account)]

    @staticmethod
    async def upsert_trip_treasury_account(
        db: AsyncSession, ctx: SessionContext, data: TripTreasuryAccountUpsert
    ) -> TripTreasuryAccount:
        access_policy.enforce_treasurer(ctx, "set the trip treasury account", "trip_treasury_account")

        result = await db.execute(
            select(TripTreasuryAccount).where(TripTreasuryAccount.trip_id == ctx.trip_id)
        )
        account = result.scalar_one_or_none()
        if account is None:
            account = TripTreasuryAccount(trip_id=ctx.trip_id)
            db.add(account)

        account.treasurer_id = ctx.actor_id
        account.bank_name = data.bank_name
        account.account_number = data.account_number
        account.account_holder = data.account_holder
        account.memo = data.memo
        await commit(db)
        await db.refresh(account)

        logger.info("Treasury account of trip %s saved", ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TRIP_TREASURY_ACCOUNTS)
        return account

    @staticmethod
    async def get_trip_treasury_account(db: AsyncSession, ctx: SessionContext) -> Optional[TripTreasuryAccount]:
        access_policy.enforce_member(ctx)
        result = await db.execute(
            select(TripTreasuryAccount).where(TripTreasuryAccount.trip_id == ctx.trip_id)
        )
        return result.scalar_one_or_none()
