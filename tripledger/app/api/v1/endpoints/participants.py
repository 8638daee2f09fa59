"""
Participant API Endpoints.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.dependencies import get_current_identity, get_session_context
from tripledger.app.db.session import get_db
from tripledger.app.schemas.trip import ParticipantCreate, ParticipantResponse
from tripledger.app.services.participant_service import ParticipantService

router = APIRouter(prefix="/trips/{trip_id}/participants", tags=["Participants"])


@router.get("", response_model=list[ParticipantResponse])
async def list_participants(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    participants = await ParticipantService.list(db, ctx)
    return [ParticipantResponse.from_model(p) for p in participants]


@router.post("", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
async def add_participant(
    data: ParticipantCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    participant = await ParticipantService.add(db, ctx, data.name)
    return ParticipantResponse.from_model(participant)


@router.delete("/{participant_id}")
async def remove_participant(
    participant_id: str = Path(..., description="Participant ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a participant (treasurer or admin).

    Fails while the participant pays for or shares an active expense, or when
    fewer than two participants would remain.
    """
    return await ParticipantService.remove(db, ctx, participant_id)


@router.post("/{participant_id}/claim", response_model=ParticipantResponse)
async def claim_participant(
    trip_id: str = Path(..., description="Trip ID"),
    participant_id: str = Path(..., description="Participant ID"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Link the caller's identity to an unclaimed participant."""
    participant = await ParticipantService.claim(db, trip_id, participant_id, identity)
    return ParticipantResponse.from_model(participant)
