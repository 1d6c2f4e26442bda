"""Error translation endpoint."""

from fastapi import APIRouter

from vpsdash.schemas.operations import TranslateErrorRequest, TranslateErrorResponse
from vpsdash.services.error_translator import translate

router = APIRouter(prefix="/errors", tags=["errors"])


@router.post("/translate")
async def translate_error(request: TranslateErrorRequest) -> TranslateErrorResponse:
    """Translate a raw Docker or deployment error into a readable message."""
    return TranslateErrorResponse(message=translate(request.error))
