"""
Expense database models.

An expense is a single payment event split evenly across a set of participants.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from tripledger.app.db.session import Base
from tripledger.app.models.mixins import SoftDeleteMixin, generate_id, utcnow


class Expense(SoftDeleteMixin, Base):
    """
    Expense model.

    Invariants (enforced by the ledger services before any write):
    - amount > 0 (smallest currency unit)
    - the share set is non-empty and references participants of the same trip
    """
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    # Payer is cleared when a participant referenced only by deleted expenses is removed
    payer_id = Column(String(36), ForeignKey("participants.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)

    created_by = Column(String(36), nullable=True)

    # Settlement
    is_settled = Column(Boolean, default=False, nullable=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    settled_by = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    participant_links = relationship(
        "ExpenseParticipant",
        back_populates="expense",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    images = relationship(
        "ExpenseImage",
        back_populates="expense",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ExpenseImage.created_at",
    )

    @property
    def participant_ids(self):
        return sorted(link.participant_id for link in self.participant_links)

    def __repr__(self):
        return f"<Expense(id={self.id}, amount={self.amount}, deleted={self.is_deleted})>"


class ExpenseParticipant(Base):
    """Link row: one participant sharing the cost of one expense."""
    __tablename__ = "expense_participants"

    expense_id = Column(String(36), ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True)
    participant_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True, index=True)

    expense = relationship("Expense", back_populates="participant_links")


class ExpenseImage(Base):
    """
    Receipt attachment.

    Only the opaque blob-store path is persisted; access URLs are issued at read time.
    """
    __tablename__ = "expense_images"

    id = Column(String(36), primary_key=True, default=generate_id)
    expense_id = Column(String(36), ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)

    path = Column(String(500), nullable=False)
    mime_type = Column(String(100), nullable=True)
    size = Column(Integer, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    expense = relationship("Expense", back_populates="images")

    def __repr__(self):
        return f"<ExpenseImage(id={self.id}, expense_id={self.expense_id}, path='{self.path}')>"
