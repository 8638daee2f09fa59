"""
Treasury database models.

Movements of the collective fund and the fund's receiving bank account.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum
from tripledger.app.db.session import Base
from tripledger.app.models.enums import TreasuryDirection
from tripledger.app.models.mixins import SoftDeleteMixin, generate_id, utcnow


class TreasuryTransaction(SoftDeleteMixin, Base):
    """
    Treasury transaction model.

    ``receive``: the counterparty paid into the fund.
    ``send``: the fund paid the counterparty (e.g. an expense settlement payout,
    linked through ``expense_id``).
    """
    __tablename__ = "treasury_transactions"

    id = Column(String(36), primary_key=True, default=generate_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)

    # Recording treasurer
    treasurer_id = Column(String(36), nullable=True)

    direction = Column(
        Enum(TreasuryDirection, values_callable=lambda e: [m.value for m in e], name="treasury_direction"),
        nullable=False
    )
    counterparty_id = Column(String(36), ForeignKey("participants.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Integer, nullable=False)
    memo = Column(Text, nullable=True)

    # Optional links
    due_id = Column(String(36), ForeignKey("dues_goals.id", ondelete="SET NULL"), nullable=True, index=True)
    expense_id = Column(String(36), ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<TreasuryTransaction(id={self.id}, direction='{self.direction.value}', amount={self.amount})>"


class TripTreasuryAccount(Base):
    """Receiving bank account of a trip's collective fund. At most one per trip."""
    __tablename__ = "trip_treasury_accounts"

    id = Column(String(36), primary_key=True, default=generate_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, unique=True)
    treasurer_id = Column(String(36), nullable=True)

    bank_name = Column(String(100), nullable=False)
    account_number = Column(String(100), nullable=False)
    account_holder = Column(String(100), nullable=False)
    memo = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
