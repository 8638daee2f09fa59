"""
Settlement and audit Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, Optional, List
from tripledger.app.models.enums import AuditAction, AuditEntity


class SettlementLineResponse(BaseModel):
    to_id: str
    to_name: str
    amount: int

    class Config:
        from_attributes = True


class PersonalSettlementResponse(BaseModel):
    person_id: str
    person_name: str
    settlements: List[SettlementLineResponse]
    total_amount: int

    class Config:
        from_attributes = True


class NetBalanceResponse(BaseModel):
    participant_id: str
    participant_name: str
    balance: int

    class Config:
        from_attributes = True


class NetBalanceReportResponse(BaseModel):
    payers: List[NetBalanceResponse]
    receivers: List[NetBalanceResponse]
    total_to_collect: int
    total_to_pay_out: int

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    id: int
    entity_type: AuditEntity
    entity_id: str
    action: AuditAction
    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]
    actor_id: Optional[str]
    actor_identity: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
