"""Services container for dependency injection.

This module provides the Services container and dependency injection
utilities for accessing services from FastAPI routes via app.state.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from vpsdash.client import DashboardClient
from vpsdash.services.operations import OperationService
from vpsdash.services.poller import ProgressPoller

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Container for application services with proper lifecycle management.

    All services are created at startup and cleaned up at shutdown.
    Stored in FastAPI's app.state for proper request scoping.
    """

    client: DashboardClient
    poller: ProgressPoller
    operations: OperationService

    async def close(self) -> None:
        """Stop polling and release the HTTP client."""
        stopped = self.poller.stop_all()
        if stopped:
            logger.info("Stopped %d active poller(s)", stopped)
        await self.client.aclose()
        logger.info("Services cleaned up")


def get_services(request: Request) -> Services:
    """Get services from request's app state (dependency injection).

    Raises:
        RuntimeError: If services not initialized (app not running).
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Is the app running?")
    return services
