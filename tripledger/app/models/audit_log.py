"""
Audit Log Database Model.

Immutable change records for ledger entities, consumed by history views.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum
from tripledger.app.db.session import Base
from tripledger.app.models.enums import AuditAction, AuditEntity
from tripledger.app.models.mixins import utcnow


class AuditLog(Base):
    """
    Audit log model.

    Entries are created, never mutated or deleted.
    ``before``/``after`` carry only changed fields for ``update`` actions and the
    full participant-id sets for ``participants_update``.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Trip scope; not a foreign key so history survives hard deletes
    trip_id = Column(String(36), nullable=False, index=True)

    # What changed
    entity_type = Column(
        Enum(AuditEntity, values_callable=lambda e: [m.value for m in e], name="audit_entity"),
        nullable=False
    )
    entity_id = Column(String(36), nullable=False, index=True)
    action = Column(
        Enum(AuditAction, values_callable=lambda e: [m.value for m in e], name="audit_action"),
        nullable=False, index=True
    )
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)

    # Who changed it
    actor_id = Column(String(36), nullable=True)
    actor_identity = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action.value}', entity={self.entity_id})>"
