"""Step templates for each operation kind."""

from vpsdash.core.enums import OperationKind, StepStatus
from vpsdash.core.models import Step

_STEP_LABELS: dict[OperationKind, tuple[str, ...]] = {
    OperationKind.DEPLOY: (
        "Downloading source code",
        "Detecting project type",
        "Building image",
        "Starting container",
        "Running health check",
    ),
    OperationKind.STOP: (
        "Stopping container",
        "Cleaning up resources",
    ),
    OperationKind.DELETE: (
        "Stopping container",
        "Removing resources",
        "Deleting files",
    ),
}


def get_step_labels(kind: OperationKind) -> tuple[str, ...]:
    """Ordered step labels for an operation kind."""
    return _STEP_LABELS[kind]


def get_steps(kind: OperationKind) -> list[Step]:
    """Fresh, all-pending steps for an operation kind."""
    return [
        Step(index=i, label=label, status=StepStatus.PENDING)
        for i, label in enumerate(_STEP_LABELS[kind])
    ]
