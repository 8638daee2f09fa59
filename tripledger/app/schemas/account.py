"""
Bank-account Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ParticipantAccountUpsert(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=100)
    account_holder: str = Field(..., min_length=1, max_length=100)
    is_public: bool = False


class ParticipantAccountResponse(BaseModel):
    id: str
    participant_id: str
    bank_name: str
    account_number: str
    account_holder: str
    is_public: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class TripTreasuryAccountUpsert(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=100)
    account_holder: str = Field(..., min_length=1, max_length=100)
    memo: Optional[str] = Field(None, max_length=500)


class TripTreasuryAccountResponse(BaseModel):
    id: str
    trip_id: str
    treasurer_id: Optional[str]
    bank_name: str
    account_number: str
    account_holder: str
    memo: Optional[str]
    updated_at: datetime

    class Config:
        from_attributes = True
