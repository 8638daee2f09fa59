"""
Shared column helpers for ledger models.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, Integer


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SoftDeleteMixin:
    """
    Soft-delete state for Expense, DuesGoal and TreasuryTransaction.

    Soft delete sets all three fields, restore clears all three.
    ``revision`` is bumped on every mutation for optimistic concurrency checks.
    """
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(36), nullable=True)
    revision = Column(Integer, default=1, nullable=False)

    def mark_deleted(self, actor_id):
        self.is_deleted = True
        self.deleted_at = utcnow()
        self.deleted_by = actor_id
        self.revision += 1

    def mark_restored(self):
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.revision += 1
