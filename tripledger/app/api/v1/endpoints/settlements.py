"""
Settlement and history API Endpoints.

Read-only views recomputed from the active ledger on every call.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.core.guards import access_policy
from tripledger.app.db.session import get_db
from tripledger.app.schemas.settlement import (
    AuditLogResponse, NetBalanceReportResponse, PersonalSettlementResponse,
)
from tripledger.app.services import audit
from tripledger.app.services.settlement_service import SettlementService

router = APIRouter(prefix="/trips/{trip_id}", tags=["Settlements"])


@router.get("/settlements/personal", response_model=list[PersonalSettlementResponse])
async def get_personal_settlements(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Who owes whom, pair by pair (reverse debts are not netted)."""
    return await SettlementService.personal_settlements(db, ctx)


@router.get("/settlements/balances", response_model=NetBalanceReportResponse)
async def get_net_balances(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Per-participant balance against the collective fund."""
    report = await SettlementService.net_balances(db, ctx)
    return NetBalanceReportResponse.model_validate(report)


@router.get("/history/{entity_id}", response_model=list[AuditLogResponse])
async def get_entity_history(
    entity_id: str = Path(..., description="Expense, dues goal or treasury transaction ID"),
    limit: int = Query(100, ge=1, le=500),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail of one entity, newest first."""
    access_policy.enforce_member(ctx)
    return await audit.get_entity_history(db, ctx.trip_id, entity_id, limit)
