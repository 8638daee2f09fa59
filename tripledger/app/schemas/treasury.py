"""
Treasury and dues Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List
from tripledger.app.models.enums import TreasuryDirection


class TreasuryTransactionCreate(BaseModel):
    """Schema for recording a collective-fund movement."""
    direction: TreasuryDirection
    counterparty_id: str
    amount: int
    memo: Optional[str] = Field(None, max_length=500)
    due_id: Optional[str] = None


class DuesReceiptsCreate(BaseModel):
    """One ``receive`` transaction per counterparty for the same goal and amount."""
    due_id: str
    counterparty_ids: List[str]
    amount: int
    memo: Optional[str] = Field(None, max_length=500)


class TreasuryTransactionResponse(BaseModel):
    id: str
    trip_id: str
    treasurer_id: Optional[str]
    direction: TreasuryDirection
    counterparty_id: Optional[str]
    amount: int
    memo: Optional[str]
    due_id: Optional[str]
    expense_id: Optional[str]
    is_deleted: bool
    deleted_at: Optional[datetime]
    deleted_by: Optional[str]
    revision: int
    created_at: datetime

    class Config:
        from_attributes = True


class TreasuryTotalsResponse(BaseModel):
    received: int
    sent: int
    balance: int


class DuesGoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    due_date: Optional[date] = None
    target_amount: int = Field(..., description="Per-participant target")


class DuesGoalResponse(BaseModel):
    id: str
    trip_id: str
    title: str
    due_date: Optional[date]
    target_amount: int
    is_deleted: bool
    deleted_at: Optional[datetime]
    deleted_by: Optional[str]
    revision: int
    created_at: datetime

    class Config:
        from_attributes = True


class ParticipantDuesStatusResponse(BaseModel):
    participant_id: str
    participant_name: str
    paid: int
    fully_paid: bool

    class Config:
        from_attributes = True


class DuesProgressResponse(BaseModel):
    goal_id: str
    title: str
    target_amount: int
    participant_count: int
    total_target: int
    received: int
    remaining: int
    surplus: int
    participants: List[ParticipantDuesStatusResponse]

    class Config:
        from_attributes = True
