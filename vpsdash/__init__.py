"""vpsdash - Live progress tracking for remote VPS app operations.

Turns a long-running deploy, stop or delete on a managed server into a
stepped progress view by polling the app's logs and status, classifying
partial progress from the log text and translating raw Docker errors into
readable messages.

Examples:
    Follow a deploy:
    ```python
    from vpsdash import DashboardClient, OperationService, ProgressPoller, TargetRef

    async with DashboardClient("http://localhost:4000", token=token) as client:
        poller = ProgressPoller()
        service = OperationService(client, poller)
        target = TargetRef(server_id="srv-1", app_id="app-1")
        poller.model(target).subscribe(lambda view: print(view.progress_percent))
        handle = await service.deploy(target)
        view = await poller.wait(handle)
    ```
"""

from vpsdash.client import DashboardClient
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
from vpsdash.exceptions import (
    APIError,
    AuthenticationRequiredError,
    InvalidTransitionError,
    TargetNotFoundError,
    VpsDashError,
)
from vpsdash.services import (
    OperationService,
    PollHandle,
    ProgressModel,
    ProgressPoller,
    classify,
    translate,
)

__all__ = [
    "APIError",
    "AuthenticationRequiredError",
    "Classification",
    "DashboardClient",
    "InvalidTransitionError",
    "LogSnapshot",
    "OperationKind",
    "OperationRun",
    "OperationService",
    "Outcome",
    "PollHandle",
    "ProgressModel",
    "ProgressPoller",
    "ProgressView",
    "RunStatus",
    "Step",
    "StepStatus",
    "TargetNotFoundError",
    "VpsDashError",
    "classify",
    "get_steps",
    "translate",
]
