"""FastAPI dependency injection factories.

Usage in routes:
    from vpsdash.api.deps import PollerDep

    @router.get("/operations/{server_id}/{app_id}")
    async def get_operation(poller: PollerDep) -> ...:
        ...
"""

from typing import Annotated

from fastapi import Depends

from vpsdash.api.container import Services, get_services
from vpsdash.services.operations import OperationService
from vpsdash.services.poller import ProgressPoller

ServicesDep = Annotated[Services, Depends(get_services)]


def _get_poller(services: ServicesDep) -> ProgressPoller:
    return services.poller


def _get_operations(services: ServicesDep) -> OperationService:
    return services.operations


PollerDep = Annotated[ProgressPoller, Depends(_get_poller)]
OperationServiceDep = Annotated[OperationService, Depends(_get_operations)]
