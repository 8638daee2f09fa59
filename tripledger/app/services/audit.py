"""
Audit Recorder.

Appends immutable change records for ledger entities. Entries are written in
the caller's transaction (flush only, the caller commits) so an entity write
and its audit entry commit or roll back together.
"""

import enum
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.context import SessionContext
from tripledger.app.models.audit_log import AuditLog
from tripledger.app.models.enums import AuditAction, AuditEntity

# Fields captured in create/delete/restore snapshots and compared for update diffs
AUDITED_FIELDS = {
    AuditEntity.EXPENSE: ("payer_id", "amount", "description", "is_settled"),
    AuditEntity.DUES_GOAL: ("title", "due_date", "target_amount"),
    AuditEntity.TREASURY_TRANSACTION: (
        "direction", "counterparty_id", "amount", "memo", "due_id", "expense_id"
    ),
}


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(entity: Any, fields: Iterable[str]) -> Dict[str, Any]:
    """Capture ``fields`` of ``entity`` as a JSON-safe dict."""
    return {name: _jsonable(getattr(entity, name)) for name in fields}


def entity_snapshot(entity_type: AuditEntity, entity: Any) -> Dict[str, Any]:
    data = snapshot(entity, AUDITED_FIELDS[entity_type])
    if entity_type == AuditEntity.EXPENSE:
        data["participant_ids"] = list(entity.participant_ids)
    return data


def diff(before: Dict[str, Any], after: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Reduce two snapshots to the fields that changed.

    Returns:
        (before_changed, after_changed); both empty when nothing changed
    """
    changed = [key for key in after if before.get(key) != after.get(key)]
    return (
        {key: before.get(key) for key in changed},
        {key: after.get(key) for key in changed},
    )


async def record(
    db: AsyncSession,
    ctx: SessionContext,
    entity_type: AuditEntity,
    entity_id: str,
    action: AuditAction,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Append an audit entry inside the current transaction.

    Args:
        db: Database session (caller commits)
        ctx: Acting session context (actor participant and identity)
        entity_type: Audited entity type
        entity_id: Affected entity
        action: AuditAction tag
        before: Snapshot or diff before the change
        after: Snapshot or diff after the change

    Returns:
        Flushed AuditLog instance
    """
    entry = AuditLog(
        trip_id=ctx.trip_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        before=before,
        after=after,
        actor_id=ctx.actor_id,
        actor_identity=ctx.identity.identity_id,
    )

    db.add(entry)
    await db.flush()

    return entry


async def clear_reference(
    db: AsyncSession,
    ctx: SessionContext,
    entity_type: AuditEntity,
    row: Any,
    field: str,
) -> AuditLog:
    """Null ``field`` on ``row`` as a side effect of another change and audit it as an ``update``."""
    before = {field: _jsonable(getattr(row, field))}
    setattr(row, field, None)
    row.revision += 1
    return await record(db, ctx, entity_type, row.id, AuditAction.UPDATE, before=before, after={field: None})


async def get_entity_history(
    db: AsyncSession,
    trip_id: str,
    entity_id: str,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve the audit trail of one entity.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = (
        select(AuditLog)
        .where(AuditLog.trip_id == trip_id, AuditLog.entity_id == entity_id)
        .order_by(desc(AuditLog.created_at), desc(AuditLog.id))
        .limit(limit)
    )

    result = await db.execute(query)
    return result.scalars().all()
