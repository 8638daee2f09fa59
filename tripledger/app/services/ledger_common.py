"""
Shared lifecycle helpers for soft-deletable ledger entities.

Expense, DuesGoal and TreasuryTransaction follow:
active -> soft-deleted -> (restored -> active) | (hard-deleted, terminal).

Lookup policy: an operation that needs an active record raises NotFoundError
for a soft-deleted one and vice versa, so deleting twice or restoring an
active record fails the same way as a missing id.
"""

import logging
from typing import Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.exceptions import ConflictError, NotFoundError
from tripledger.app.models.participant import Participant

logger = logging.getLogger("tripledger.ledger")

ACTIVE = "active"
DELETED = "deleted"
ANY = "any"


async def get_scoped(
    db: AsyncSession,
    model: Type,
    entity: str,
    trip_id: str,
    entity_id: str,
    state: str = ACTIVE,
):
    """
    Load a trip-scoped row in the required lifecycle state.

    Raises:
        NotFoundError if missing, in another trip, or not in ``state``
    """
    result = await db.execute(
        select(model).where(model.id == entity_id, model.trip_id == trip_id)
    )
    row = result.scalar_one_or_none()

    if row is None:
        raise NotFoundError(entity, entity_id)
    if state == ACTIVE and row.is_deleted:
        raise NotFoundError(entity, entity_id, rule=f"{entity} is deleted")
    if state == DELETED and not row.is_deleted:
        raise NotFoundError(entity, entity_id, rule=f"{entity} is not deleted")

    return row


def check_revision(row, entity: str, expected_revision: Optional[int]):
    """Optimistic concurrency check; None keeps last-write-wins."""
    if expected_revision is not None and row.revision != expected_revision:
        raise ConflictError(
            f"{entity} was modified concurrently (expected revision {expected_revision}, found {row.revision})",
            entity=entity,
            entity_id=row.id
        )


async def get_trip_participants(db: AsyncSession, trip_id: str) -> list[Participant]:
    result = await db.execute(
        select(Participant)
        .where(Participant.trip_id == trip_id)
        .order_by(Participant.name, Participant.id)
    )
    return result.scalars().all()


async def commit(db: AsyncSession):
    """
    Commit the entity write together with its audit entry.

    Any failure rolls back both and propagates.
    """
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Ledger commit failed; transaction rolled back")
        raise
