"""
Participant database model.

A participant is a member of one trip. A participant row is "claimed" by an
identity from the identity provider on first login.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from tripledger.app.db.session import Base
from tripledger.app.models.mixins import generate_id, utcnow


class Participant(Base):
    """
    Participant model.

    Capabilities:
        is_treasurer: elevated write capability over the trip ledger
        has_account: a bank account has been registered (independent of visibility)
    """
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("trip_id", "name", name="uq_participant_trip_name"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)

    # Linked identity (None until claimed)
    identity_id = Column(String(255), nullable=True, index=True)

    is_treasurer = Column(Boolean, default=False, nullable=False)
    has_account = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Participant(id={self.id}, name='{self.name}', treasurer={self.is_treasurer})>"
