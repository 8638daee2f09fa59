"""
Expense API Endpoints.

Shared-cost records of a trip, their settlement flag and receipt images.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.core.dependencies import get_session_context
from tripledger.app.db.session import get_db
from tripledger.app.schemas.expense import (
    ExpenseCreate, ExpenseImageResponse, ExpenseResponse, ExpenseSettle, ExpenseUpdate,
)
from tripledger.app.services.blob_store import LocalBlobStore, get_blob_store
from tripledger.app.services.expense_service import ExpenseService

router = APIRouter(prefix="/trips/{trip_id}/expenses", tags=["Expenses"])


@router.get("", response_model=list[ExpenseResponse])
async def list_expenses(
    include_deleted: bool = Query(False, description="Include soft-deleted expenses"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.list(db, ctx, include_deleted)


@router.get("/deleted", response_model=list[ExpenseResponse])
async def list_deleted_expenses(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Soft-deleted expenses, most recently deleted first."""
    return await ExpenseService.list_deleted(db, ctx)


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Record an expense (treasurer only).

    Validates:
    - amount is positive
    - the share set is non-empty
    - payer and share members belong to the trip
    """
    return await ExpenseService.create(db, ctx, data)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: str = Path(..., description="Expense ID"),
    include_deleted: bool = Query(False),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.get(db, ctx, expense_id, include_deleted)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    data: ExpenseUpdate,
    expense_id: str = Path(..., description="Expense ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Edit fields or replace the share set (treasurer or creator)."""
    return await ExpenseService.update(db, ctx, expense_id, data)


@router.delete("/{expense_id}", response_model=ExpenseResponse)
async def delete_expense(
    expense_id: str = Path(..., description="Expense ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.delete(db, ctx, expense_id)


@router.post("/{expense_id}/restore", response_model=ExpenseResponse)
async def restore_expense(
    expense_id: str = Path(..., description="Expense ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.restore(db, ctx, expense_id)


@router.post("/{expense_id}/settle", response_model=ExpenseResponse)
async def settle_expense(
    data: ExpenseSettle,
    expense_id: str = Path(..., description="Expense ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.set_settled(db, ctx, expense_id, data)


@router.get("/{expense_id}/images", response_model=list[ExpenseImageResponse])
async def list_expense_images(
    expense_id: str = Path(..., description="Expense ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store)
):
    return await ExpenseService.list_images(db, ctx, store, expense_id)


@router.post("/{expense_id}/images", response_model=ExpenseImageResponse, status_code=status.HTTP_201_CREATED)
async def add_expense_image(
    expense_id: str = Path(..., description="Expense ID"),
    file: UploadFile = File(...),
    width: Optional[int] = Form(None),
    height: Optional[int] = Form(None),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store)
):
    content = await file.read()
    image = await ExpenseService.add_image(
        db, ctx, store, expense_id, content, file.content_type, width, height
    )
    response = ExpenseImageResponse.model_validate(image)
    response.url = store.signed_url(image.path)
    return response


@router.delete("/{expense_id}/images/{image_id}")
async def remove_expense_image(
    expense_id: str = Path(..., description="Expense ID"),
    image_id: str = Path(..., description="Image ID"),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store)
):
    return await ExpenseService.remove_image(db, ctx, store, expense_id, image_id)
