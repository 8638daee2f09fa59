"""
Treasury API Endpoints.

Collective-fund movements, totals and the fund's receiving account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.db.session import get_db
from tripledger.app.schemas.account import TripTreasuryAccountResponse, TripTreasuryAccountUpsert
from tripledger.app.schemas.treasury import (
    DuesReceiptsCreate, TreasuryTotalsResponse, TreasuryTransactionCreate, TreasuryTransactionResponse,
)
from tripledger.app.services.account_service import AccountService
from tripledger.app.services.treasury_service import TreasuryService

router = APIRouter(prefix="/trips/{trip_id}/treasury", tags=["Treasury"])


@router.get("/transactions", response_model=list[TreasuryTransactionResponse])
async def list_transactions(
    include_deleted: bool = Query(False, description="Include soft-deleted transactions"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.list(db, ctx, include_deleted)


@router.post("/transactions", response_model=TreasuryTransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    data: TreasuryTransactionCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.record(db, ctx, data)


@router.post("/dues-receipts", response_model=list[TreasuryTransactionResponse], status_code=status.HTTP_201_CREATED)
async def record_dues_receipts(
    data: DuesReceiptsCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Record the same dues payment for several participants at once."""
    return await TreasuryService.record_dues_receipts(db, ctx, data)


@router.delete("/transactions/{transaction_id}", response_model=TreasuryTransactionResponse)
async def delete_transaction(
    transaction_id: str = Path(..., description="Treasury transaction ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.delete(db, ctx, transaction_id)


@router.post("/transactions/{transaction_id}/restore", response_model=TreasuryTransactionResponse)
async def restore_transaction(
    transaction_id: str = Path(..., description="Treasury transaction ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.restore(db, ctx, transaction_id)


@router.get("/totals", response_model=TreasuryTotalsResponse)
async def get_totals(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await TreasuryService.totals(db, ctx)


@router.get("/account", response_model=Optional[TripTreasuryAccountResponse])
async def get_treasury_account(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await AccountService.get_trip_treasury_account(db, ctx)


@router.put("/account", response_model=TripTreasuryAccountResponse)
async def upsert_treasury_account(
    data: TripTreasuryAccountUpsert,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await AccountService.upsert_trip_treasury_account(db, ctx, data)
