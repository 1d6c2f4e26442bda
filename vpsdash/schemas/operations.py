"""Operation API schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from vpsdash.core.enums import OperationKind
from vpsdash.core.models import ProgressView, TargetRef


class StartOperationRequest(BaseModel):
    """Request to trigger an operation and track its progress."""

    kind: OperationKind = Field(description="Operation to run")
    server_id: str = Field(min_length=1, description="Server the app runs on")
    app_id: str = Field(min_length=1, description="Application identifier")

    @property
    def target(self) -> TargetRef:
        return TargetRef(server_id=self.server_id, app_id=self.app_id)


class TranslateErrorRequest(BaseModel):
    """Raw error text to translate."""

    error: str


class TranslateErrorResponse(BaseModel):
    """Human-readable error message."""

    message: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class SnapshotEvent(BaseModel):
    """SSE event carrying the current progress view."""

    type: Literal["snapshot"] = "snapshot"
    view: ProgressView


class UpdatedEvent(BaseModel):
    """SSE event carrying a progress view after a write."""

    type: Literal["updated"] = "updated"
    view: ProgressView
