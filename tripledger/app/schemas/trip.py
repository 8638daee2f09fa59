"""
Trip and participant Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class TripCreate(BaseModel):
    """Schema for creating a trip (admin)."""
    name: str = Field(..., min_length=1, max_length=200, description="Trip name")
    participant_names: List[str] = Field(default_factory=list, description="Initial participants")


class TripRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class TripResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class TripSummaryResponse(BaseModel):
    """Overview figures for one trip."""
    trip_id: str
    participant_count: int
    expense_count: int
    expense_total: int
    treasury_received: int
    treasury_sent: int
    settlement_count: int


class ParticipantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TreasurerToggle(BaseModel):
    is_treasurer: bool


class ParticipantResponse(BaseModel):
    id: str
    trip_id: str
    name: str
    is_treasurer: bool
    has_account: bool
    is_claimed: bool

    @classmethod
    def from_model(cls, participant) -> "ParticipantResponse":
        return cls(
            id=participant.id,
            trip_id=participant.trip_id,
            name=participant.name,
            is_treasurer=participant.is_treasurer,
            has_account=participant.has_account,
            is_claimed=participant.identity_id is not None,
        )


class TokenRequest(BaseModel):
    """Debug identity-provider request."""
    identity_id: Optional[str] = Field(None, max_length=255)
    is_admin: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    identity_id: str
    is_admin: bool
