"""
Trip API Endpoints.

Trips visible to the caller and the per-trip overview.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.dependencies import get_current_identity, get_session_context
from tripledger.app.core.guards import access_policy
from tripledger.app.db.session import get_db
from tripledger.app.schemas.trip import TripResponse, TripSummaryResponse
from tripledger.app.services.trip_service import TripService

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=list[TripResponse])
async def list_my_trips(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Trips in which the caller claimed a participant (every trip for admins)."""
    return await TripService.list(db, identity)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    access_policy.enforce_member(ctx)
    return await TripService.get(db, ctx.trip_id)


@router.get("/{trip_id}/summary", response_model=TripSummaryResponse)
async def get_trip_summary(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TripService.summary(db, ctx)
