"""Service protocols for dependency injection."""

from typing import Any, Protocol

from vpsdash.core.models import LogSnapshot, TargetRef


class OperationBackend(Protocol):
    """Narrow interface OperationService needs from the dashboard backend.

    DashboardClient implements it.
    """

    async def deploy_app(self, target: TargetRef) -> Any: ...

    async def stop_app(self, target: TargetRef) -> Any: ...

    async def delete_app(self, target: TargetRef) -> None: ...

    async def fetch_logs(self, target: TargetRef) -> LogSnapshot:
        """Log fetcher for deploy and stop runs."""
        ...

    async def fetch_delete_state(self, target: TargetRef) -> LogSnapshot:
        """Log fetcher for delete runs."""
        ...
