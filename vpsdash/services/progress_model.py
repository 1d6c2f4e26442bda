"""Observable progress state for one target."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from vpsdash.core.models import OperationRun, ProgressView, TargetRef
from vpsdash.core.types import ViewListener

logger = logging.getLogger(__name__)


class ProgressModel:
    """Single-writer, multi-reader record of the current run for a target.

    Only the poller that owns the active run writes to the model. Writes
    are tagged with the run id and silently dropped when the run has been
    superseded, so a late fetch from an abandoned run never reaches readers.

    Readers either poll `snapshot()`, register a synchronous listener with
    `subscribe()`, or open an async queue with `stream()` (used for SSE).

    Thread-Safety:
        Not thread-safe. All access happens on the event loop thread.

    Backpressure:
        Stream queues hold at most STREAM_QUEUE_SIZE views. When a queue is
        full the oldest view is dropped to make room for the new one.
    """

    STREAM_QUEUE_SIZE = 100

    def __init__(self, target: TargetRef) -> None:
        self._target = target
        self._run: OperationRun | None = None
        self._is_open = False
        self._listeners: list[ViewListener] = []
        self._queues: list[asyncio.Queue[ProgressView]] = []
        self._close_hooks: list[Callable[[TargetRef], None]] = []

    @property
    def target(self) -> TargetRef:
        return self._target

    @property
    def run_id(self) -> str | None:
        return self._run.id if self._run else None

    @property
    def is_open(self) -> bool:
        return self._is_open

    # -------------------------------------------------------------------------
    # Reader API
    # -------------------------------------------------------------------------

    def snapshot(self) -> ProgressView:
        """Current read-only view (empty view if no run was ever started)."""
        if self._run is None:
            return ProgressView(target=self._target.key, is_open=self._is_open)
        return ProgressView.from_run(self._run, is_open=self._is_open)

    def run(self) -> OperationRun | None:
        """Deep copy of the current run, safe for callers to keep."""
        return self._run.model_copy(deep=True) if self._run else None

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Register a listener called with a fresh view after every write.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: ViewListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @asynccontextmanager
    async def stream(self) -> AsyncIterator[asyncio.Queue[ProgressView]]:
        """Subscribe to views via an async queue."""
        queue: asyncio.Queue[ProgressView] = asyncio.Queue(
            maxsize=self.STREAM_QUEUE_SIZE
        )
        self._queues.append(queue)
        try:
            yield queue
        finally:
            self._queues.remove(queue)

    def on_close(self, hook: Callable[[TargetRef], None]) -> None:
        """Register a hook run when the view is closed (e.g. cache invalidation)."""
        self._close_hooks.append(hook)

    def close(self) -> ProgressView:
        """Close the progress view.

        Clears `is_open` and runs close hooks. The run itself is left
        untouched; polling, if still active, continues.
        """
        self._is_open = False
        for hook in list(self._close_hooks):
            try:
                hook(self._target)
            except Exception:
                logger.exception("Close hook failed for %s", self._target)
        return self._notify()

    # -------------------------------------------------------------------------
    # Writer API (poller only)
    # -------------------------------------------------------------------------

    def begin(self, run: OperationRun) -> ProgressView:
        """Install a new run, discarding whatever run was there before."""
        if self._run is not None and self._run.id != run.id:
            logger.debug(
                "Run %s superseded by %s on %s",
                self._run.id[:8],
                run.id[:8],
                self._target,
            )
        self._run = run
        self._is_open = True
        return self._notify()

    def is_current(self, run_id: str) -> bool:
        return self._run is not None and self._run.id == run_id

    def update(self, run_id: str, mutate: Callable[[OperationRun], None]) -> bool:
        """Apply a mutation to the current run and notify readers.

        Args:
            run_id: Run the writer believes is current.
            mutate: Function applying the changes in place.

        Returns:
            True if applied, False if `run_id` is stale.
        """
        if self._run is None or self._run.id != run_id:
            logger.debug("Discarding stale update from run %s", run_id[:8])
            return False
        mutate(self._run)
        self._notify()
        return True

    # -------------------------------------------------------------------------
    # Private
    # -------------------------------------------------------------------------

    def _notify(self) -> ProgressView:
        view = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Progress listener failed for %s", self._target)
        for queue in list(self._queues):
            self._safe_put(queue, view)
        return view

    @staticmethod
    def _safe_put(queue: asyncio.Queue[ProgressView], view: ProgressView) -> None:
        """Put a view with drop-oldest backpressure."""
        try:
            queue.put_nowait(view)
        except asyncio.QueueFull:
            try:
                queue.get_nowait()  # Drop oldest
                queue.put_nowait(view)
            except asyncio.QueueEmpty:
                pass
