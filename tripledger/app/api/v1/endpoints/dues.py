"""
Dues API Endpoints.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.db.session import get_db
from tripledger.app.schemas.treasury import DuesGoalCreate, DuesGoalResponse, DuesProgressResponse
from tripledger.app.services.dues_service import DuesService

router = APIRouter(prefix="/trips/{trip_id}/dues", tags=["Dues"])


@router.get("", response_model=list[DuesGoalResponse])
async def list_goals(
    include_deleted: bool = Query(False, description="Include soft-deleted goals"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.list(db, ctx, include_deleted)


@router.post("", response_model=DuesGoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    data: DuesGoalCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.create(db, ctx, data)


@router.get("/progress", response_model=list[DuesProgressResponse])
async def list_progress(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.list_progress(db, ctx)


@router.get("/{goal_id}/progress", response_model=DuesProgressResponse)
async def get_progress(
    goal_id: str = Path(..., description="Dues goal ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.progress(db, ctx, goal_id)


@router.delete("/{goal_id}", response_model=DuesGoalResponse)
async def delete_goal(
    goal_id: str = Path(..., description="Dues goal ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.delete(db, ctx, goal_id)


@router.post("/{goal_id}/restore", response_model=DuesGoalResponse)
async def restore_goal(
    goal_id: str = Path(..., description="Dues goal ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await DuesService.restore(db, ctx, goal_id)
