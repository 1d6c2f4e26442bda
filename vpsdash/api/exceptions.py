"""Error responses and handlers for the API.

All API errors use a consistent response format:
{
    "error": "error_code",
    "message": "Human-readable description",
    ...additional context fields
}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from vpsdash.exceptions import VpsDashError


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""

    @app.exception_handler(VpsDashError)
    async def vpsdash_error_handler(
        request: Request, exc: VpsDashError
    ) -> JSONResponse:
        """Generic handler for all VpsDashError subclasses."""
        content: dict[str, str | None] = {
            "error": exc.error_code,
            "message": exc.message,
        }

        # Add context fields if present on the exception
        for field in ("target", "upstream_status"):
            value = getattr(exc, field, None)
            if value is not None:
                content[field] = str(value)

        return JSONResponse(status_code=exc.status_code, content=content)
