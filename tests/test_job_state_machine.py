"""Unit tests for the JobStateMachine."""

import pytest

from smider_platform.domain.enums import JobActor, JobStatus
from smider_platform.services.job_state_machine import (
    CANCELLABLE_STATES,
    TERMINAL_STATES,
    TRANSITION_MAP,
    InvalidTransitionError,
    JobStateMachine,
)

S = JobStatus
A = JobActor


@pytest.fixture
def sm():
    return JobStateMachine()


# ---------------------------------------------------------------------------
# Test every valid transition in the transition map
# ---------------------------------------------------------------------------


class TestValidTransitions:
    """Every transition defined in TRANSITION_MAP should succeed for allowed actors."""

    @pytest.mark.parametrize(
        "from_status,to_status,actor",
        [
            (from_s, to_s, actor)
            for from_s, targets in TRANSITION_MAP.items()
            for to_s, actors in targets.items()
            for actor in actors
        ],
    )
    def test_all_valid_transitions(self, sm, from_status, to_status, actor):
        assert sm.validate_transition(from_status, to_status, actor) is True

    def test_happy_path(self, sm):
        for current, target, actor in [
            (S.DRAFT, S.PENDING_PAYMENT, A.SYSTEM),
            (S.PENDING_PAYMENT, S.SEARCHING, A.SYSTEM),
            (S.SEARCHING, S.ASSIGNED, A.CONTRACTOR),
            (S.ASSIGNED, S.COMPLETED, A.SYSTEM),
        ]:
            assert sm.validate_transition(current, target, actor) is True

    def test_accepts_string_statuses(self, sm):
        assert sm.validate_transition("searching", "assigned", "contractor") is True


class TestInvalidTransitions:
    @pytest.mark.parametrize("current,target,actor", [
        (S.DRAFT, S.SEARCHING, A.SYSTEM),
        (S.PENDING_PAYMENT, S.ASSIGNED, A.CONTRACTOR),
        (S.SEARCHING, S.COMPLETED, A.SYSTEM),
        (S.ASSIGNED, S.SEARCHING, A.SYSTEM),
        (S.SEARCHING, S.ASSIGNED, A.CUSTOMER),
        (S.SEARCHING, S.MANUAL_REVIEW, A.CONTRACTOR),
    ])
    def test_rejected(self, sm, current, target, actor):
        with pytest.raises(InvalidTransitionError) as exc_info:
            sm.validate_transition(current, target, actor)
        assert exc_info.value.current_status == current
        assert exc_info.value.target_status == target

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATES, key=lambda s: s.value))
    def test_terminal_states_have_no_exit(self, sm, terminal):
        for target in JobStatus:
            if target == terminal:
                continue
            with pytest.raises(InvalidTransitionError):
                sm.validate_transition(terminal, target, A.ADMIN)


class TestCancellation:
    @pytest.mark.parametrize("current", sorted(CANCELLABLE_STATES, key=lambda s: s.value))
    @pytest.mark.parametrize("actor", [A.CUSTOMER, A.ADMIN])
    def test_cancel_from_any_non_terminal(self, sm, current, actor):
        assert sm.validate_transition(current, S.CANCELLED, actor) is True

    def test_system_never_cancels(self, sm):
        with pytest.raises(InvalidTransitionError, match="may not cancel"):
            sm.validate_transition(S.SEARCHING, S.CANCELLED, A.SYSTEM)

    def test_terminal_not_cancellable(self, sm):
        with pytest.raises(InvalidTransitionError, match="no longer be cancelled"):
            sm.validate_transition(S.COMPLETED, S.CANCELLED, A.ADMIN)


class TestAllowedTransitions:
    def test_searching_for_contractor(self, sm):
        assert sm.get_allowed_transitions(S.SEARCHING, A.CONTRACTOR) == [S.ASSIGNED]

    def test_searching_for_admin(self, sm):
        assert sm.get_allowed_transitions(S.SEARCHING, A.ADMIN) == [S.MANUAL_REVIEW, S.CANCELLED]

    def test_terminal_has_none(self, sm):
        assert sm.get_allowed_transitions(S.CANCELLED, A.ADMIN) == []

    def test_is_terminal(self, sm):
        assert sm.is_terminal("manual_review") is True
        assert sm.is_terminal(S.ASSIGNED) is False
