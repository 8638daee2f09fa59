"""
Dues Tracker Tests.
"""

from tripledger.app.domain.dues.tracker import compute_dues_progress
from tripledger.app.domain.snapshot import DuesGoalSnapshot, ParticipantSnapshot, TreasurySnapshot
from tripledger.app.models.enums import TreasuryDirection

PEOPLE = [
    ParticipantSnapshot(id="a", name="Alice"),
    ParticipantSnapshot(id="b", name="Bob"),
    ParticipantSnapshot(id="c", name="Carol"),
]
GOAL = DuesGoalSnapshot(id="g1", title="1st installment", target_amount=10000)


def receipt(tx_id, counterparty, amount, due_id="g1"):
    return TreasurySnapshot(
        id=tx_id, direction=TreasuryDirection.RECEIVE, counterparty_id=counterparty, amount=amount, due_id=due_id
    )


def test_two_of_three_paid():
    progress = compute_dues_progress(GOAL, PEOPLE, [receipt("t1", "a", 10000), receipt("t2", "b", 10000)])

    assert progress.total_target == 30000
    assert progress.received == 20000
    assert progress.remaining == 10000
    assert progress.surplus == 0
    assert sorted(progress.fully_paid_ids) == ["a", "b"]
    assert progress.paid == {"a": 10000, "b": 10000}


def test_partial_payment_is_not_fully_paid():
    progress = compute_dues_progress(GOAL, PEOPLE, [receipt("t1", "c", 4000)])

    status = {s.participant_id: s for s in progress.participants}
    assert status["c"].paid == 4000
    assert status["c"].fully_paid is False
    assert progress.remaining == 26000


def test_overpayment_reports_surplus():
    transactions = [receipt(f"t{i}", pid, 12000) for i, pid in enumerate(["a", "b", "c"])]
    progress = compute_dues_progress(GOAL, PEOPLE, transactions)

    assert progress.remaining == 0
    assert progress.surplus == 6000
    assert progress.received + progress.remaining - progress.surplus == progress.total_target


def test_only_tagged_receipts_count():
    transactions = [
        receipt("t1", "a", 10000),
        receipt("t2", "b", 10000, due_id=None),
        receipt("t3", "c", 10000, due_id="other-goal"),
        TreasurySnapshot(id="t4", direction=TreasuryDirection.SEND, counterparty_id="a", amount=500, due_id="g1"),
    ]
    progress = compute_dues_progress(GOAL, PEOPLE, transactions)

    assert progress.received == 10000
    assert progress.fully_paid_ids == ["a"]


def test_invariant_holds_without_receipts():
    progress = compute_dues_progress(GOAL, PEOPLE, [])

    assert progress.received == 0
    assert progress.remaining == progress.total_target == 30000
    assert progress.received + progress.remaining - progress.surplus == progress.total_target
