"""Polling loop that drives operation progress views."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial

from vpsdash.core.catalog import get_steps
from vpsdash.core.enums import OperationKind, Outcome, RunStatus, StepStatus
from vpsdash.core.models import (
    Classification,
    LogSnapshot,
    OperationRun,
    ProgressView,
    Step,
    TargetRef,
)
from vpsdash.core.types import Clock, IdGenerator, LogFetcher, StatusFetcher
from vpsdash.services.classifier import classify
from vpsdash.services.error_translator import translate
from vpsdash.services.progress_model import ProgressModel

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0
MAX_ATTEMPTS = 60
FETCH_TIMEOUT = 10.0
INITIAL_PROGRESS = 10
PROGRESS_COMPLETE = 100


@dataclass(eq=False)
class PollHandle:
    """Handle to one polling loop, returned by `ProgressPoller.start`."""

    run_id: str
    kind: OperationKind
    target: TargetRef
    _task: asyncio.Task[None] | None = field(default=None, repr=False)
    _stopped: bool = field(default=False, repr=False)
    _released: bool = field(default=False, repr=False)

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()


class ProgressPoller:
    """Turns a long-running remote action into a live, stepped progress view.

    Each started run gets its own asyncio task that, every `interval`
    seconds, fetches the target's logs and status, classifies them and
    writes the result into the target's ProgressModel.

    Key Responsibilities:
        - One active loop per target: starting a run supersedes the old one
        - Attempt ceiling: a loop never runs more than `max_attempts` ticks
        - Transient fetch failures are swallowed and retried on the next tick
        - Staleness: results of a stopped or superseded run are discarded

    Architecture Notes:
        - Ticks never overlap; each awaits its fetch before sleeping again
        - Tasks are tracked in a set to prevent garbage collection
        - No exception escapes a loop; every fault ends as a silent retry
          or a terminal error state on the run
        - Reaching the attempt ceiling leaves the run in its last
          non-terminal state with `polling` cleared
    """

    def __init__(
        self,
        interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_ATTEMPTS,
        fetch_timeout: float | None = FETCH_TIMEOUT,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            interval: Seconds between ticks.
            max_attempts: Tick ceiling per run.
            fetch_timeout: Seconds before a fetch counts as failed (None
                disables the timeout).
            clock: Function returning the current datetime (enables testing).
            id_generator: Function generating unique run IDs.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._interval = interval
        self._max_attempts = max_attempts
        self._fetch_timeout = fetch_timeout
        self._clock = clock or (lambda: datetime.now(UTC))
        self._id_generator = id_generator or (lambda: str(uuid.uuid4()))

        self._models: dict[str, ProgressModel] = {}
        self._active: dict[str, PollHandle] = {}
        # Track background tasks to prevent GC during polling
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def model(self, target: TargetRef) -> ProgressModel:
        """Progress model for a target, created on first use."""
        if (model := self._models.get(target.key)) is None:
            model = self._models[target.key] = ProgressModel(target)
        return model

    def has_model(self, target: TargetRef) -> bool:
        return target.key in self._models

    def active(self, target: TargetRef) -> PollHandle | None:
        """Handle of the loop currently polling a target, if any."""
        return self._active.get(target.key)

    def start(
        self,
        kind: OperationKind,
        target: TargetRef,
        log_fetcher: LogFetcher,
        status_fetcher: StatusFetcher | None = None,
    ) -> PollHandle:
        """Start tracking an operation on a target.

        Any loop already polling the target is stopped first and its run
        discarded. Must be called from a running event loop.

        Args:
            kind: Operation to track.
            target: Application the operation runs on.
            log_fetcher: Returns the target's logs (and status field).
            status_fetcher: Optional separate source for the status field.

        Returns:
            Handle used to stop or await the loop.

        Raises:
            RuntimeError: If no event loop is running. Nothing is changed.
        """
        asyncio.get_running_loop()

        if previous := self._active.get(target.key):
            logger.info(
                "Superseding run %s on %s with a new %s",
                previous.run_id[:8],
                target,
                kind,
            )
            self.stop(previous)

        run = OperationRun(
            id=self._id_generator(),
            kind=kind,
            target=target,
            steps=get_steps(kind),
            started_at=self._clock(),
        )
        run.transition(RunStatus.RUNNING)
        run.steps[0].status = StepStatus.RUNNING
        run.progress_percent = INITIAL_PROGRESS
        run.polling = True

        model = self.model(target)
        model.begin(run)

        handle = PollHandle(run_id=run.id, kind=kind, target=target)
        task = asyncio.create_task(
            self._poll(handle, model, log_fetcher, status_fetcher),
            name=f"poll-{run.id[:8]}",
        )
        handle._task = task
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        self._active[target.key] = handle

        logger.info("Started %s run %s on %s", kind, run.id[:8], target)
        return handle

    def stop(self, handle: PollHandle) -> None:
        """Stop a polling loop. Idempotent.

        No mutation of the handle's run happens after this returns, even
        if a fetch it started resolves later.
        """
        if handle.stopped:
            return
        handle._stopped = True
        if handle._task is not None and not handle._task.done():
            handle._task.cancel()
        self._release(handle)
        logger.info("Stopped run %s on %s", handle.run_id[:8], handle.target)

    def stop_all(self) -> int:
        """Stop every active loop. Used during shutdown.

        Returns:
            Number of loops stopped.
        """
        handles = list(self._active.values())
        for handle in handles:
            self.stop(handle)
        return len(handles)

    async def wait(self, handle: PollHandle) -> ProgressView:
        """Wait for a loop to end and return the target's final view."""
        if handle._task is not None:
            try:
                await handle._task
            except asyncio.CancelledError:
                # Our own caller being cancelled always propagates
                current = asyncio.current_task()
                if not handle.stopped or (current and current.cancelling()):
                    raise
        return self.model(handle.target).snapshot()

    # -------------------------------------------------------------------------
    # Private: polling loop
    # -------------------------------------------------------------------------

    async def _poll(
        self,
        handle: PollHandle,
        model: ProgressModel,
        log_fetcher: LogFetcher,
        status_fetcher: StatusFetcher | None,
    ) -> None:
        """Background task that ticks until terminal, exhausted or stopped."""
        step_index = 0
        attempts = 0
        try:
            while attempts < self._max_attempts:
                await asyncio.sleep(self._interval)
                if handle.stopped:
                    return
                attempts += 1

                snapshot = await self._fetch(
                    handle.target, log_fetcher, status_fetcher
                )

                # Staleness: stopped or superseded while the fetch was in flight
                if handle.stopped or not model.is_current(handle.run_id):
                    logger.debug("Discarding stale fetch for %s", handle.run_id[:8])
                    return

                if snapshot is None:
                    logger.debug(
                        "Fetch failed for %s (attempt %d/%d), retrying",
                        handle.target,
                        attempts,
                        self._max_attempts,
                    )
                    continue

                result = classify(handle.kind, snapshot, step_index)
                step_index = result.step_index
                model.update(
                    handle.run_id,
                    partial(self._apply, result, snapshot, attempts),
                )

                if result.outcome.is_terminal:
                    logger.info(
                        "Run %s on %s finished: %s",
                        handle.run_id[:8],
                        handle.target,
                        result.outcome,
                    )
                    return

            logger.warning(
                "Run %s on %s reached %d attempts without finishing",
                handle.run_id[:8],
                handle.target,
                self._max_attempts,
            )
        except Exception:
            # Never expected: classification and model writes are pure
            logger.exception("Polling loop for %s crashed", handle.run_id[:8])
        finally:
            handle._stopped = True
            self._release(handle, attempts)

    async def _fetch(
        self,
        target: TargetRef,
        log_fetcher: LogFetcher,
        status_fetcher: StatusFetcher | None,
    ) -> LogSnapshot | None:
        """Run the fetchers. Returns None on any transient failure."""
        try:
            async with asyncio.timeout(self._fetch_timeout):
                raw = await log_fetcher(target)
                snapshot = (
                    raw
                    if isinstance(raw, LogSnapshot)
                    else LogSnapshot.model_validate(raw)
                )
                if status_fetcher is not None:
                    status = await status_fetcher(target)
                    snapshot = LogSnapshot(logs=snapshot.logs, status=status)
                return snapshot
        except TimeoutError:
            logger.debug("Fetch for %s timed out", target)
        except Exception as e:
            logger.debug("Fetch for %s failed: %s", target, e)
        return None

    def _release(self, handle: PollHandle, attempts: int | None = None) -> None:
        """Free the target slot and clear the run's polling flag once."""
        if handle._released:
            return
        handle._released = True
        if self._active.get(handle.target.key) is handle:
            del self._active[handle.target.key]

        def _mark_idle(run: OperationRun) -> None:
            run.polling = False
            if attempts is not None:
                run.attempt_count = max(run.attempt_count, attempts)

        self.model(handle.target).update(handle.run_id, _mark_idle)

    # -------------------------------------------------------------------------
    # Private: run mutation (called through ProgressModel.update)
    # -------------------------------------------------------------------------

    def _apply(
        self,
        result: Classification,
        snapshot: LogSnapshot,
        attempts: int,
        run: OperationRun,
    ) -> None:
        """Write a classification into the run."""
        run.attempt_count = attempts
        run.log_tail = snapshot.logs

        if run.status.is_finished:
            return

        match result.outcome:
            case Outcome.SUCCESS:
                for step in run.steps:
                    step.status = StepStatus.COMPLETED
                run.progress_percent = PROGRESS_COMPLETE
                run.transition(RunStatus.COMPLETED)
                run.finished_at = self._clock()
            case Outcome.ERROR:
                failed = min(result.step_index, len(run.steps) - 1)
                self._project_steps(run.steps, failed, StepStatus.ERROR)
                run.progress_percent = PROGRESS_COMPLETE
                run.error_message = translate(run.log_tail)
                run.transition(RunStatus.ERROR)
                run.finished_at = self._clock()
            case _:
                self._project_steps(run.steps, result.step_index, StepStatus.RUNNING)
                run.progress_percent = max(
                    run.progress_percent, result.progress_percent
                )

    @staticmethod
    def _project_steps(steps: list[Step], current: int, status: StepStatus) -> None:
        """Mark steps before `current` completed, `current` with `status`.

        Completed steps are never reverted.
        """
        for step in steps:
            if step.index < current:
                step.status = StepStatus.COMPLETED
            elif step.status is StepStatus.COMPLETED:
                continue
            elif step.index == current:
                step.status = status
            else:
                step.status = StepStatus.PENDING
