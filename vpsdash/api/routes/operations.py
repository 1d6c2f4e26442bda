"""Operations API endpoints.

Triggers deploy, stop and delete actions and exposes the resulting
progress view of each target: read, close, stop polling, and stream.
"""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from vpsdash.api.deps import OperationServiceDep, PollerDep
from vpsdash.api.exceptions import ErrorResponse
from vpsdash.core.models import ProgressView, TargetRef
from vpsdash.exceptions import TargetNotFoundError
from vpsdash.schemas.operations import (
    SnapshotEvent,
    StartOperationRequest,
    UpdatedEvent,
)
from vpsdash.services.poller import ProgressPoller
from vpsdash.services.progress_model import ProgressModel

router = APIRouter(prefix="/operations", tags=["operations"])

HEARTBEAT_INTERVAL = 30.0


def _get_model_or_raise(
    poller: ProgressPoller, server_id: str, app_id: str
) -> ProgressModel:
    """Get the target's progress model or raise TargetNotFoundError."""
    target = TargetRef(server_id=server_id, app_id=app_id)
    if not poller.has_model(target):
        raise TargetNotFoundError(target.key)
    return poller.model(target)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Backend rejected credentials"},
        404: {"model": ErrorResponse, "description": "Target not found"},
        502: {"model": ErrorResponse, "description": "Backend request failed"},
    },
)
async def start_operation(
    request: StartOperationRequest,
    operations: OperationServiceDep,
) -> ProgressView:
    """Trigger an operation and start tracking it.

    Supersedes any operation already tracked on the same target.
    """
    handle = await operations.run(request.kind, request.target)
    return operations.poller.model(handle.target).snapshot()


@router.get(
    "/{server_id}/{app_id}",
    responses={404: {"model": ErrorResponse, "description": "No progress view"}},
)
async def get_operation(server_id: str, app_id: str, poller: PollerDep) -> ProgressView:
    """Current progress view of a target."""
    return _get_model_or_raise(poller, server_id, app_id).snapshot()


@router.post(
    "/{server_id}/{app_id}/close",
    responses={404: {"model": ErrorResponse, "description": "No progress view"}},
)
async def close_operation(
    server_id: str, app_id: str, poller: PollerDep
) -> ProgressView:
    """Close the progress view. Polling, if still active, continues."""
    return _get_model_or_raise(poller, server_id, app_id).close()


@router.post(
    "/{server_id}/{app_id}/stop",
    responses={404: {"model": ErrorResponse, "description": "No progress view"}},
)
async def stop_operation(
    server_id: str, app_id: str, poller: PollerDep
) -> ProgressView:
    """Stop polling a target. The run keeps its last state."""
    model = _get_model_or_raise(poller, server_id, app_id)
    if handle := poller.active(model.target):
        poller.stop(handle)
    return model.snapshot()


@router.get(
    "/{server_id}/{app_id}/sse",
    response_class=StreamingResponse,
    summary="Stream progress views via SSE",
    description=(
        "On connect, sends a snapshot event with the current view, "
        "then streams an updated event after every change. "
        "Heartbeat comments sent every 30s."
    ),
    responses={404: {"model": ErrorResponse, "description": "No progress view"}},
)
async def stream_operation(
    server_id: str, app_id: str, poller: PollerDep
) -> StreamingResponse:
    """Stream progress views via Server-Sent Events."""
    model = _get_model_or_raise(poller, server_id, app_id)

    async def event_generator() -> AsyncIterator[str]:
        async with model.stream() as queue:
            # Subscribe first, then snapshot (updates queue up correctly)
            snapshot = SnapshotEvent(view=model.snapshot())
            yield f"data: {snapshot.model_dump_json()}\n\n"

            while True:
                try:
                    view = await asyncio.wait_for(
                        queue.get(), timeout=HEARTBEAT_INTERVAL
                    )
                    yield f"data: {UpdatedEvent(view=view).model_dump_json()}\n\n"
                except TimeoutError:
                    yield ": heartbeat\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
