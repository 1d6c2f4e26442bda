"""Core domain models for operation tracking."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from vpsdash.core.enums import OperationKind, Outcome, RunStatus, StepStatus
from vpsdash.exceptions import InvalidTransitionError


class TargetRef(BaseModel):
    """An application on a managed server."""

    model_config = ConfigDict(frozen=True)

    server_id: str = Field(min_length=1)
    app_id: str = Field(min_length=1)

    @property
    def key(self) -> str:
        return f"{self.server_id}/{self.app_id}"

    def __str__(self) -> str:
        return self.key


class LogSnapshot(BaseModel):
    """Log text and status field returned by one fetch."""

    model_config = ConfigDict(frozen=True)

    logs: str = ""
    status: str = ""

    @field_validator("logs", mode="before")
    @classmethod
    def _none_logs(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _none_status(cls, v: Any) -> Any:
        # Compared by exact equality during classification; no case folding
        return "" if v is None else v


class Classification(BaseModel):
    """Result of classifying a log snapshot."""

    model_config = ConfigDict(frozen=True)

    step_index: int = Field(ge=0)
    progress_percent: int = Field(ge=0, le=100)
    outcome: Outcome = Outcome.NONE


class Step(BaseModel):
    """One labeled phase of an operation."""

    index: int = Field(ge=0)
    label: str
    status: StepStatus = StepStatus.PENDING


class OperationRun(BaseModel):
    """One execution of a deploy, stop or delete, tracked end to end."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    kind: OperationKind
    target: TargetRef
    steps: list[Step]
    progress_percent: int = Field(default=0, ge=0, le=100)
    status: RunStatus = RunStatus.PENDING
    log_tail: str = ""
    error_message: str | None = None
    attempt_count: int = Field(default=0, ge=0)
    polling: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def title(self) -> str:
        return self.kind.title

    @property
    def step_index(self) -> int:
        """Index of the first step that is not completed.

        Equals len(steps) once every step is completed.
        """
        for step in self.steps:
            if step.status is not StepStatus.COMPLETED:
                return step.index
        return len(self.steps)

    def transition(self, status: RunStatus) -> None:
        """Move the run to a new overall status.

        Raises:
            InvalidTransitionError: If the change is not
                Pending -> Running -> Completed | Error.
        """
        if not self.status.can_transition_to(status):
            raise InvalidTransitionError(self.status, status)
        self.status = status


class StepView(BaseModel):
    """Step as shown by the presentation layer."""

    label: str
    status: StepStatus


class ProgressView(BaseModel):
    """Read-only snapshot of a progress view."""

    model_config = ConfigDict(frozen=True)

    run_id: str | None = None
    title: str = ""
    kind: OperationKind | None = None
    target: str | None = None
    overall_status: RunStatus = RunStatus.PENDING
    progress_percent: int = 0
    steps: list[StepView] = Field(default_factory=list)
    log_tail: str = ""
    error_message: str | None = None
    is_open: bool = False
    polling: bool = False
    attempt_count: int = 0

    @property
    def has_error(self) -> bool:
        return self.error_message is not None or any(
            step.status is StepStatus.ERROR for step in self.steps
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.steps) and all(
            step.status is StepStatus.COMPLETED for step in self.steps
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def headline(self) -> str:
        if self.has_error:
            return "Operation failed"
        if self.is_complete:
            return "Completed successfully"
        return "Please wait..."

    @classmethod
    def from_run(cls, run: OperationRun, *, is_open: bool) -> "ProgressView":
        return cls(
            run_id=run.id,
            title=run.title,
            kind=run.kind,
            target=run.target.key,
            overall_status=run.status,
            progress_percent=run.progress_percent,
            steps=[StepView(label=s.label, status=s.status) for s in run.steps],
            log_tail=run.log_tail,
            error_message=run.error_message,
            is_open=is_open,
            polling=run.polling,
            attempt_count=run.attempt_count,
        )
