from enum import StrEnum


class OperationKind(StrEnum):
    """Remote action tracked by a progress view."""

    DEPLOY = "deploy"
    STOP = "stop"
    DELETE = "delete"

    @property
    def title(self) -> str:
        """Heading shown while the operation runs."""
        match self:
            case OperationKind.DEPLOY:
                return "Deploying Application"
            case OperationKind.STOP:
                return "Stopping Application"
            case OperationKind.DELETE:
                return "Deleting Application"


class StepStatus(StrEnum):
    """Status of a single step in an operation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class RunStatus(StrEnum):
    """Overall status of an operation run.

    Completed and Error are absorbing: once reached, no transition leaves them.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_finished(self) -> bool:
        return self in (self.COMPLETED, self.ERROR)

    def can_transition_to(self, target: "RunStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.PENDING: frozenset({RunStatus.RUNNING}),
    RunStatus.RUNNING: frozenset({RunStatus.COMPLETED, RunStatus.ERROR}),
    RunStatus.COMPLETED: frozenset(),
    RunStatus.ERROR: frozenset(),
}


class Outcome(StrEnum):
    """Terminal outcome of a log classification."""

    NONE = "none"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not Outcome.NONE
