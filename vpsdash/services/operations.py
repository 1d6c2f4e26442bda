"""Trigger remote actions and track their progress."""

import logging

from vpsdash.core.enums import OperationKind
from vpsdash.core.models import TargetRef
from vpsdash.core.types import LogFetcher
from vpsdash.services.poller import PollHandle, ProgressPoller
from vpsdash.services.protocols import OperationBackend

logger = logging.getLogger(__name__)


class OperationService:
    """Entry point for user actions on an application.

    Sends the action request to the backend, then hands the target over
    to the poller. If the action request fails, the error propagates and
    no run is started.
    """

    def __init__(self, backend: OperationBackend, poller: ProgressPoller) -> None:
        self._backend = backend
        self._poller = poller

    @property
    def poller(self) -> ProgressPoller:
        return self._poller

    async def run(self, kind: OperationKind, target: TargetRef) -> PollHandle:
        """Trigger `kind` on `target` and start tracking it."""
        logger.info("Requesting %s of %s", kind, target)
        match kind:
            case OperationKind.DEPLOY:
                await self._backend.deploy_app(target)
            case OperationKind.STOP:
                await self._backend.stop_app(target)
            case OperationKind.DELETE:
                await self._backend.delete_app(target)
        return self.track(kind, target)

    def track(self, kind: OperationKind, target: TargetRef) -> PollHandle:
        """Start tracking an operation that was triggered elsewhere."""
        return self._poller.start(kind, target, self.fetcher_for(kind))

    def fetcher_for(self, kind: OperationKind) -> LogFetcher:
        if kind is OperationKind.DELETE:
            return self._backend.fetch_delete_state
        return self._backend.fetch_logs

    async def deploy(self, target: TargetRef) -> PollHandle:
        return await self.run(OperationKind.DEPLOY, target)

    async def stop(self, target: TargetRef) -> PollHandle:
        return await self.run(OperationKind.STOP, target)

    async def delete(self, target: TargetRef) -> PollHandle:
        return await self.run(OperationKind.DELETE, target)
