from fastapi import APIRouter

from schemas import HealthResponse

router = APIRouter(prefix="/api/diag", tags=["diag"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")
