"""Health check endpoint."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from crud_users.core.health import check_health
from crud_users.db.store import Store
from crud_users.web.dependencies import get_store
from crud_users.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": HealthResponse}},
)
def health_check(store: Store = Depends(get_store)) -> JSONResponse:
    """Check database connectivity."""
    health = check_health(store)
    body = HealthResponse(status=health.status, database=health.database)
    status_code = (
        status.HTTP_200_OK if health.healthy else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())
