"""
Access Policy Tests.

Capability checks run before any write and raise without side effects.
"""

import pytest

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.exceptions import AuthorizationError, ValidationError
from tripledger.app.core.guards import access_policy, require_admin
from tripledger.app.models.expense import Expense

MEMBER = SessionContext(trip_id="t1", identity=Identity("bob"), participant_id="p-bob")
TREASURER = SessionContext(trip_id="t1", identity=Identity("alice"), participant_id="p-alice", is_treasurer=True)
ADMIN = SessionContext(trip_id="t1", identity=Identity("root", is_admin=True))
OUTSIDER = SessionContext(trip_id="t1", identity=Identity("eve"))


def test_reads_require_membership_or_admin():
    access_policy.enforce_member(MEMBER)
    access_policy.enforce_member(ADMIN)
    with pytest.raises(AuthorizationError):
        access_policy.enforce_member(OUTSIDER)


def test_treasurer_and_admin_are_independent_capabilities():
    access_policy.enforce_treasurer(TREASURER, "add expenses")
    with pytest.raises(AuthorizationError):
        access_policy.enforce_treasurer(ADMIN, "add expenses")
    with pytest.raises(AuthorizationError):
        access_policy.enforce_admin(TREASURER, "permanently delete expenses")


def test_expense_creator_or_treasurer_may_modify():
    own = Expense(id="e1", created_by="p-bob")
    other = Expense(id="e2", created_by="p-carol")

    access_policy.enforce_expense_owner_or_treasurer(MEMBER, own, "edit this expense")
    access_policy.enforce_expense_owner_or_treasurer(TREASURER, other, "edit this expense")
    with pytest.raises(AuthorizationError) as exc_info:
        access_policy.enforce_expense_owner_or_treasurer(MEMBER, other, "edit this expense")
    assert exc_info.value.entity_id == "e2"


def test_outsider_cannot_modify_anonymous_expense():
    assert access_policy.can_modify_expense(OUTSIDER, None) is False


def test_participant_removal_keeps_two():
    with pytest.raises(ValidationError) as exc_info:
        access_policy.enforce_participant_removal("p1", 2, [], [])
    assert "at least 2" in exc_info.value.rule


def test_participant_removal_blocked_by_active_reference():
    with pytest.raises(ValidationError):
        access_policy.enforce_participant_removal("p1", 4, ["p1"], [])
    with pytest.raises(ValidationError):
        access_policy.enforce_participant_removal("p1", 4, ["p2"], ["p2", "p1"])

    access_policy.enforce_participant_removal("p1", 3, ["p2"], ["p2", "p3"])


def test_require_admin():
    assert require_admin(Identity("root", is_admin=True)).identity_id == "root"
    with pytest.raises(AuthorizationError):
        require_admin(Identity("bob"))
