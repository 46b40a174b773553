"""
Health check route.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pastedrop.database import PasteStore, get_store
from pastedrop.models import HealthCheck

router = APIRouter()


@router.get("/health", response_model=HealthCheck)
async def health_check(store: PasteStore = Depends(get_store)) -> JSONResponse:
    """
    Health check endpoint.
    Returns 200 with ok=true if the storage backend answers, else 503.
    """
    is_healthy = store.health_check()
    return JSONResponse(
        content=HealthCheck(ok=is_healthy).model_dump(),
        status_code=200 if is_healthy else 503,
    )
