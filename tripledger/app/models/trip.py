"""
Trip database model.

A trip is the top-level scope grouping participants, expenses and treasury activity.
"""

from sqlalchemy import Column, String, DateTime
from tripledger.app.db.session import Base
from tripledger.app.models.mixins import generate_id, utcnow


class Trip(Base):
    """Trip model. Created and deleted by administrators only."""
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, name='{self.name}')>"
