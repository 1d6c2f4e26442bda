from fastapi import APIRouter

from vpsdash.schemas.operations import HealthResponse

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> HealthResponse:
    return HealthResponse()
