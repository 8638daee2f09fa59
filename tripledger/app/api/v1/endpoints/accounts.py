"""
Participant account API Endpoints.

Private accounts are only returned to their owner, treasurers and admins.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.db.session import get_db
from tripledger.app.schemas.account import ParticipantAccountResponse, ParticipantAccountUpsert
from tripledger.app.services.account_service import AccountService

router = APIRouter(prefix="/trips/{trip_id}/accounts", tags=["Accounts"])


@router.get("", response_model=list[ParticipantAccountResponse])
async def list_accounts(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await AccountService.list_participant_accounts(db, ctx)


@router.get("/{participant_id}", response_model=ParticipantAccountResponse)
async def get_account(
    participant_id: str = Path(..., description="Participant ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await AccountService.get_participant_account(db, ctx, participant_id)


@router.put("/{participant_id}", response_model=ParticipantAccountResponse)
async def upsert_account(
    data: ParticipantAccountUpsert,
    participant_id: str = Path(..., description="Participant ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await AccountService.upsert_participant_account(db, ctx, participant_id, data)
