"""Log classification for operation progress.

Turns the accumulated log text and the coarse status field of a target
into a step index, a progress percentage and a terminal outcome. Matching
is plain case-sensitive substring containment against ordered trigger
tables; the status field is compared by equality.
"""

from dataclasses import dataclass

from vpsdash.core.enums import OperationKind, Outcome
from vpsdash.core.models import Classification, LogSnapshot

DEFAULT_STEP_INDEX = 0
DEFAULT_PROGRESS = 20
ERROR_STATUS = "error"
ERROR_MARKER = "failed"


@dataclass(frozen=True)
class TriggerRule:
    """Advance to `step_index` when any substring or status matches.

    Attributes:
        substrings: Log fragments that fire the rule.
        step_index: Step reached when the rule fires.
        progress: Progress percentage at that step.
        statuses: Status field values that also fire the rule.
        outcome: Terminal outcome signalled by the rule.
    """

    substrings: tuple[str, ...]
    step_index: int
    progress: int
    statuses: frozenset[str] = frozenset()
    outcome: Outcome = Outcome.NONE

    def matches(self, logs: str, status: str) -> bool:
        return status in self.statuses or any(s in logs for s in self.substrings)


TRIGGER_RULES: dict[OperationKind, tuple[TriggerRule, ...]] = {
    OperationKind.DEPLOY: (
        TriggerRule(("Downloading", "Downloaded"), 1, 30),
        TriggerRule(("Found", "Detected"), 2, 45),
        TriggerRule(("Building", "docker-compose"), 3, 60),
        TriggerRule(("Starting", "Creating"), 4, 80),
        TriggerRule(
            ("success",),
            5,
            100,
            statuses=frozenset({"running"}),
            outcome=Outcome.SUCCESS,
        ),
    ),
    OperationKind.STOP: (
        TriggerRule(("Stopping", "docker-compose"), 1, 50),
        TriggerRule(
            ("stopped",),
            2,
            100,
            statuses=frozenset({"stopped"}),
            outcome=Outcome.SUCCESS,
        ),
    ),
    OperationKind.DELETE: (
        TriggerRule(("Stopping", "docker-compose"), 1, 40),
        TriggerRule(("Removing", "Removed"), 2, 70),
        TriggerRule(
            ("deleted",),
            3,
            100,
            statuses=frozenset({"deleted", "absent"}),
            outcome=Outcome.SUCCESS,
        ),
    ),
}


def progress_for_step(kind: OperationKind, step_index: int) -> int:
    """Progress percentage shown at a step index."""
    progress = DEFAULT_PROGRESS
    for rule in TRIGGER_RULES[kind]:
        if rule.step_index <= step_index:
            progress = max(progress, rule.progress)
    return progress


def is_error(snapshot: LogSnapshot) -> bool:
    """Whether a snapshot reports a failed operation."""
    return snapshot.status == ERROR_STATUS or ERROR_MARKER in snapshot.logs.lower()


def classify(
    kind: OperationKind,
    snapshot: LogSnapshot,
    previous_step_index: int = DEFAULT_STEP_INDEX,
) -> Classification:
    """Classify a log snapshot for an operation kind.

    The step index never regresses below `previous_step_index`. Error
    detection runs after the progress rules and overrides their outcome.

    Args:
        kind: Operation being tracked.
        snapshot: Accumulated log text and status field.
        previous_step_index: Step index reached on the previous tick.

    Returns:
        Step index, progress percentage and terminal outcome.
    """
    fired_index = DEFAULT_STEP_INDEX
    outcome = Outcome.NONE
    for rule in TRIGGER_RULES[kind]:
        if rule.matches(snapshot.logs, snapshot.status):
            fired_index = max(fired_index, rule.step_index)
            if rule.outcome.is_terminal:
                outcome = rule.outcome

    step_index = max(previous_step_index, fired_index)

    if is_error(snapshot):
        outcome = Outcome.ERROR

    return Classification(
        step_index=step_index,
        progress_percent=progress_for_step(kind, step_index),
        outcome=outcome,
    )

