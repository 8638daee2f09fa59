"""
Access Policy: capability-based checks for ledger mutations.

Capabilities are independent booleans, not an inheritance chain:
- ``is_treasurer`` (participant flag, per trip)
- administrator (identity claim)

Every check runs before any write and raises AuthorizationError
(or ValidationError for data-dependent removal rules) without side effects.
"""

from typing import Iterable, Optional

from fastapi import Depends

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.dependencies import get_current_identity
from tripledger.app.core.exceptions import AuthorizationError, ValidationError

MIN_PARTICIPANTS = 2


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.post("/admin/trips")
        async def create_trip(admin: Identity = Depends(require_admin)):
            ...

    Raises:
        AuthorizationError if the identity lacks the administrator capability
    """
    if not identity.is_admin:
        raise AuthorizationError("administrator capability required")
    return identity


class AccessPolicy:
    """
    Class-based capability guard.

    Usage:
        access_policy.enforce_treasurer(ctx, "record treasury transactions")
    """

    def enforce_member(self, ctx: SessionContext):
        """Reads require trip membership or the administrator capability."""
        if not (ctx.is_member or ctx.is_admin):
            raise AuthorizationError("trip membership required", entity="trip", entity_id=ctx.trip_id)

    def enforce_treasurer(self, ctx: SessionContext, action: str, entity: str = None, entity_id: str = None):
        if not ctx.is_treasurer:
            raise AuthorizationError(f"only a treasurer may {action}", entity=entity, entity_id=entity_id)

    def enforce_admin(self, ctx: SessionContext, action: str, entity: str = None, entity_id: str = None):
        if not ctx.is_admin:
            raise AuthorizationError(f"only an administrator may {action}", entity=entity, entity_id=entity_id)

    def can_modify_expense(self, ctx: SessionContext, created_by: Optional[str]) -> bool:
        """Treasurers may modify any expense; other participants only their own."""
        if ctx.is_treasurer:
            return True
        return ctx.participant_id is not None and ctx.participant_id == created_by

    def enforce_expense_owner_or_treasurer(self, ctx: SessionContext, expense, action: str):
        if not self.can_modify_expense(ctx, expense.created_by):
            raise AuthorizationError(
                f"only a treasurer or the expense creator may {action}",
                entity="expense",
                entity_id=expense.id
            )

    def enforce_treasurer_or_admin(self, ctx: SessionContext, action: str, entity: str = None, entity_id: str = None):
        if not (ctx.is_treasurer or ctx.is_admin):
            raise AuthorizationError(
                f"only a treasurer or an administrator may {action}", entity=entity, entity_id=entity_id
            )

    def enforce_member_or_admin(self, ctx: SessionContext, action: str):
        if not (ctx.is_member or ctx.is_admin):
            raise AuthorizationError(f"only trip members may {action}", entity="trip", entity_id=ctx.trip_id)

    def enforce_participant_removal(
        self,
        participant_id: str,
        participant_count: int,
        active_payer_ids: Iterable[str],
        active_share_ids: Iterable[str],
    ):
        """
        Data rules for removing a participant.

        Args:
            participant_id: Participant to remove
            participant_count: Current participant count of the trip
            active_payer_ids: Payers of non-deleted expenses
            active_share_ids: Share members of non-deleted expenses

        Raises:
            ValidationError if fewer than two would remain or the participant
            appears in an active expense. Soft-deleted expenses do not count.
        """
        if participant_count - 1 < MIN_PARTICIPANTS:
            raise ValidationError(
                f"a trip must keep at least {MIN_PARTICIPANTS} participants",
                entity="participant",
                entity_id=participant_id
            )
        if participant_id in set(active_payer_ids) or participant_id in set(active_share_ids):
            raise ValidationError(
                "participant is referenced by an active expense",
                entity="participant",
                entity_id=participant_id
            )


access_policy = AccessPolicy()
