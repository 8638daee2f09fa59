"""
Admin API Endpoints.

Trip lifecycle, permanent deletes and treasurer assignment. Every route
requires the administrator capability.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.core.guards import require_admin
from tripledger.app.db.session import get_db
from tripledger.app.schemas.trip import (
    ParticipantResponse, TreasurerToggle, TripCreate, TripRename, TripResponse,
)
from tripledger.app.services.dues_service import DuesService
from tripledger.app.services.expense_service import ExpenseService
from tripledger.app.services.participant_service import ParticipantService
from tripledger.app.services.treasury_service import TreasuryService
from tripledger.app.services.trip_service import TripService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/trips", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    data: TripCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a trip with its initial participants."""
    return await TripService.create(db, admin, data)


@router.get("/trips", response_model=list[TripResponse])
async def list_all_trips(
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await TripService.list(db, admin)


@router.patch("/trips/{trip_id}", response_model=TripResponse)
async def rename_trip(
    data: TripRename,
    trip_id: str = Path(..., description="Trip ID"),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await TripService.rename(db, admin, trip_id, data.name)


@router.delete("/trips/{trip_id}")
async def delete_trip(
    trip_id: str = Path(..., description="Trip ID"),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a trip and everything scoped to it."""
    return await TripService.delete(db, admin, trip_id)


@router.put("/trips/{trip_id}/participants/{participant_id}/treasurer", response_model=ParticipantResponse)
async def set_treasurer(
    data: TreasurerToggle,
    participant_id: str = Path(..., description="Participant ID"),
    admin: Identity = Depends(require_admin),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    participant = await ParticipantService.set_treasurer(db, ctx, participant_id, data.is_treasurer)
    return ParticipantResponse.from_model(participant)


@router.delete("/trips/{trip_id}/expenses/{expense_id}")
async def hard_delete_expense(
    expense_id: str = Path(..., description="Expense ID"),
    admin: Identity = Depends(require_admin),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Permanently delete an expense, active or soft-deleted."""
    return await ExpenseService.hard_delete(db, ctx, expense_id)


@router.delete("/trips/{trip_id}/treasury/transactions/{transaction_id}")
async def hard_delete_transaction(
    transaction_id: str = Path(..., description="Treasury transaction ID"),
    admin: Identity = Depends(require_admin),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.hard_delete(db, ctx, transaction_id)


@router.delete("/trips/{trip_id}/dues/{goal_id}")
async def hard_delete_goal(
    goal_id: str = Path(..., description="Dues goal ID"),
    admin: Identity = Depends(require_admin),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.hard_delete(db, ctx, goal_id)
