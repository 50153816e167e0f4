"""Job state machine: validates job status transitions and actor permissions."""

from smider_platform.domain.enums import JobActor, JobStatus


class InvalidTransitionError(Exception):
    """Raised when a job state transition is not allowed."""

    def __init__(self, current_status: JobStatus, target_status: JobStatus, reason: str):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


# ---------------------------------------------------------------------------
# Transition map: from_status -> {to_status: set_of_allowed_actors}
# ---------------------------------------------------------------------------

S = JobStatus
A = JobActor

TRANSITION_MAP: dict[JobStatus, dict[JobStatus, set[JobActor]]] = {
    S.DRAFT: {
        S.MANUAL_REVIEW: {A.SYSTEM},
        S.PENDING_PAYMENT: {A.SYSTEM},
    },
    S.PENDING_PAYMENT: {
        S.SEARCHING: {A.SYSTEM},
    },
    S.SEARCHING: {
        S.ASSIGNED: {A.CONTRACTOR, A.SYSTEM},
        S.MANUAL_REVIEW: {A.ADMIN, A.SYSTEM},
    },
    S.ASSIGNED: {
        S.COMPLETED: {A.SYSTEM, A.ADMIN},
    },
}

TERMINAL_STATES: set[JobStatus] = {
    S.COMPLETED,
    S.CANCELLED,
    S.MANUAL_REVIEW,
}

# Explicit cancellation only, from any non-terminal state
CANCELLABLE_STATES: set[JobStatus] = {s for s in JobStatus if s not in TERMINAL_STATES}
CANCEL_ACTORS: set[JobActor] = {A.CUSTOMER, A.ADMIN}


class JobStateMachine:
    """Validates job state transitions."""

    def validate_transition(
        self,
        current_status: JobStatus,
        target_status: JobStatus,
        actor: JobActor,
    ) -> bool:
        """Return True if the transition is valid. Raise InvalidTransitionError if not."""
        current_status = JobStatus(current_status)
        target_status = JobStatus(target_status)
        actor = JobActor(actor)

        if target_status == S.CANCELLED:
            if current_status not in CANCELLABLE_STATES:
                raise InvalidTransitionError(
                    current_status,
                    target_status,
                    f"Job in {current_status.value} can no longer be cancelled",
                )
            if actor not in CANCEL_ACTORS:
                raise InvalidTransitionError(
                    current_status,
                    target_status,
                    f"Actor {actor.value} may not cancel a job",
                )
            return True

        allowed_targets = TRANSITION_MAP.get(current_status)
        if allowed_targets is None:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"No transitions allowed from {current_status.value}",
            )

        if target_status not in allowed_targets:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Transition from {current_status.value} to {target_status.value} is not allowed",
            )

        allowed_actors = allowed_targets[target_status]
        if actor not in allowed_actors:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Actor {actor.value} is not permitted for this transition "
                f"(allowed: {', '.join(sorted(a.value for a in allowed_actors))})",
            )

        return True

    def get_allowed_transitions(self, current_status: JobStatus, actor: JobActor) -> list[JobStatus]:
        """Return list of valid next states for the given actor from the current status."""
        current_status = JobStatus(current_status)
        actor = JobActor(actor)

        results = [
            target
            for target, allowed_actors in TRANSITION_MAP.get(current_status, {}).items()
            if actor in allowed_actors
        ]
        if current_status in CANCELLABLE_STATES and actor in CANCEL_ACTORS:
            results.append(S.CANCELLED)
        return results

    def is_terminal(self, status: JobStatus) -> bool:
        return JobStatus(status) in TERMINAL_STATES
