"""
Participant bank-account metadata.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from tripledger.app.db.session import Base
from tripledger.app.models.mixins import generate_id, utcnow


class ParticipantAccount(Base):
    """At most one account per participant (upsert keyed by participant)."""
    __tablename__ = "participant_accounts"

    id = Column(String(36), primary_key=True, default=generate_id)
    participant_id = Column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    bank_name = Column(String(100), nullable=False)
    account_number = Column(String(100), nullable=False)
    account_holder = Column(String(100), nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
