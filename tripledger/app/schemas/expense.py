"""
Expense Pydantic schemas.

Monetary invariants (positive amount, non-empty share set) are enforced by the
ledger services so violations carry the rule name; schemas only check shape.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class ExpenseCreate(BaseModel):
    """Schema for recording an expense."""
    payer_id: str
    amount: int = Field(..., description="Amount in the smallest currency unit")
    description: Optional[str] = Field(None, max_length=500)
    participant_ids: List[str] = Field(..., description="Participants sharing the cost")


class ExpenseUpdate(BaseModel):
    """Partial edit. ``participant_ids`` replaces the share set when given."""
    payer_id: Optional[str] = None
    amount: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    participant_ids: Optional[List[str]] = None
    expected_revision: Optional[int] = Field(None, description="Reject the edit if the revision moved")


class ExpenseSettle(BaseModel):
    is_settled: bool = True
    create_payout: bool = Field(False, description="Record a treasury payout to the payer")


class ExpenseImageResponse(BaseModel):
    id: str
    expense_id: str
    path: str
    url: Optional[str] = None
    mime_type: Optional[str]
    size: Optional[int]
    width: Optional[int]
    height: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    id: str
    trip_id: str
    payer_id: Optional[str]
    amount: int
    description: Optional[str]
    participant_ids: List[str]
    created_by: Optional[str]
    is_settled: bool
    settled_at: Optional[datetime]
    settled_by: Optional[str]
    is_deleted: bool
    deleted_at: Optional[datetime]
    deleted_by: Optional[str]
    revision: int
    images: List[ExpenseImageResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
