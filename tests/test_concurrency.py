"""
Tests for racing writers on a shared database.

Each test runs two sessions against one SQLite file. The second session
commits its write in the gap between the first session's read and its
conditional write, which is exactly where a lost update would happen.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from shiftboard.database import Base
from shiftboard.exceptions import ConflictError, InvalidStateError
from shiftboard.models.assignment import AssignmentStatus
from shiftboard.models.claim import ClaimStatus
from shiftboard.models.shift import ShiftStatus
from shiftboard.models.swap import SwapStatus
from shiftboard.services.claim_service import ClaimArbiter
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.store import ShiftStore
from shiftboard.services.swap_service import SwapWorkflow
from tests.conftest import FixedClock, RecordingActivityLogger, make_shift, seat_user


class Actor:
    """One request's view of the system: its own session and services."""

    def __init__(self, session, clock):
        self.session = session
        self.activity_log = RecordingActivityLogger()
        self.lifecycle = ShiftLifecycleService(
            session, now_fn=clock, activity_logger=self.activity_log, require_acceptance=False
        )
        self.arbiter = ClaimArbiter(session, now_fn=clock, activity_logger=self.activity_log, lifecycle=self.lifecycle)
        self.workflow = SwapWorkflow(session, now_fn=clock, activity_logger=self.activity_log, lifecycle=self.lifecycle)


@pytest.fixture
def actors(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    clock = FixedClock()
    first, second = SessionFactory(), SessionFactory()
    try:
        yield Actor(first, clock), Actor(second, clock)
    finally:
        first.close()
        second.close()
        engine.dispose()


def accepted_holders(actor, shift_id):
    actor.session.expire_all()
    return [
        a.user_id for a in actor.lifecycle.list_assignments(shift_id)
        if a.assignment_status == AssignmentStatus.ACCEPTED
    ]


class TestClaimRace:
    """Two managers approve different claims on a one-person shift."""

    def test_loser_gets_conflict_and_writes_nothing(self, actors, monkeypatch):
        first, second = actors
        shift_id = make_shift(first.lifecycle).id
        claim_a = first.arbiter.claim(shift_id, "user-a").id
        claim_b = first.arbiter.claim(shift_id, "user-b").id
        observe = first.lifecycle.slot_snapshot

        def observe_then_lose_race(shift, buffer):
            snapshot = observe(shift, buffer)
            second.arbiter.approve(claim_b, "manager-2")
            return snapshot

        monkeypatch.setattr(first.lifecycle, "slot_snapshot", observe_then_lose_race)

        with pytest.raises(ConflictError):
            first.arbiter.approve(claim_a, "manager-1")

        first.session.expire_all()
        assert first.arbiter.get_claim(claim_a).status == ClaimStatus.PENDING
        assert first.arbiter.get_claim(claim_b).status == ClaimStatus.APPROVED
        assert accepted_holders(first, shift_id) == ["user-b"]
        assert first.activity_log.actions("claim") == ["claimed", "claimed"]

    def test_stale_version_never_matches(self, actors):
        first, second = actors
        shift = make_shift(first.lifecycle)
        shift_id, version = shift.id, shift.version
        second.lifecycle.assign(shift_id, "user-a", "manager-2")

        assert not ShiftStore(first.session).cas_shift(shift_id, version)
        first.session.rollback()


class TestSwapRace:
    """A seat moves away while a swap over it is being approved."""

    def test_swap_rolls_back_both_shifts(self, actors, monkeypatch):
        first, second = actors
        first_id = make_shift(first.lifecycle, title="Early").id
        second_id = make_shift(first.lifecycle, title="Late").id
        seat_user(first.lifecycle, first_id, "user-a")
        seat_user(first.lifecycle, second_id, "user-b")
        swap_id = first.workflow.propose(
            first_id, "user-a", target_user_id="user-b", target_shift_id=second_id
        ).id
        first.workflow.respond(swap_id, "user-b", "accept")
        plan = first.lifecycle.plan_transfer

        def plan_then_lose_race(shift_id, from_user_id, to_user_id):
            transfer = plan(shift_id, from_user_id, to_user_id)
            if shift_id == second_id:
                second.lifecycle.unassign(second_id, "manager-2", user_id="user-b")
            return transfer

        monkeypatch.setattr(first.lifecycle, "plan_transfer", plan_then_lose_race)

        with pytest.raises(ConflictError):
            first.workflow.approve(swap_id, "manager-1")

        first.session.expire_all()
        assert first.workflow.get_swap(swap_id).status == SwapStatus.TARGET_ACCEPTED
        assert accepted_holders(first, first_id) == ["user-a"]
        assert accepted_holders(first, second_id) == []


class TestDeleteRace:
    """A pending offer is accepted while the shift is being deleted."""

    def test_accept_after_check_blocks_delete(self, actors, monkeypatch):
        first, second = actors
        shift_id = make_shift(first.lifecycle).id
        offer_id = first.lifecycle.assign(shift_id, "user-a", "manager-1", require_acceptance=True).id
        count_accepted = first.lifecycle.store.count_accepted

        def count_then_lose_race(counted_shift_id):
            accepted = count_accepted(counted_shift_id)
            second.lifecycle.respond(offer_id, "accept", responder_id="user-a")
            return accepted

        monkeypatch.setattr(first.lifecycle.store, "count_accepted", count_then_lose_race)

        with pytest.raises(ConflictError):
            first.lifecycle.delete_shift(shift_id, "manager-1")

        first.session.expire_all()
        assert first.lifecycle.get_shift(shift_id).status == ShiftStatus.ASSIGNED
        assert accepted_holders(first, shift_id) == ["user-a"]
        assert "deleted" not in first.activity_log.actions("shift")

    def test_accepted_before_delete_is_refused(self, actors):
        first, second = actors
        shift_id = make_shift(first.lifecycle).id
        offer_id = first.lifecycle.assign(shift_id, "user-a", "manager-1", require_acceptance=True).id
        first.lifecycle.get_shift(shift_id)
        second.lifecycle.respond(offer_id, "accept", responder_id="user-a")

        with pytest.raises(InvalidStateError):
            first.lifecycle.delete_shift(shift_id, "manager-1")

        first.session.expire_all()
        assert accepted_holders(first, shift_id) == ["user-a"]
