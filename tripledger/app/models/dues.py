"""
Dues goal database model.

A fixed per-person collection target (e.g. "1st installment 10,000/person").
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey
from tripledger.app.db.session import Base
from tripledger.app.models.mixins import SoftDeleteMixin, generate_id, utcnow


class DuesGoal(SoftDeleteMixin, Base):
    """Dues goal model. Total target = target_amount x participant count."""
    __tablename__ = "dues_goals"

    id = Column(String(36), primary_key=True, default=generate_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    due_date = Column(Date, nullable=True)
    target_amount = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<DuesGoal(id={self.id}, title='{self.title}', target={self.target_amount})>"
