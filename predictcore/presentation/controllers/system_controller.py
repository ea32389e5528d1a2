"""System endpoints exposing service health."""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Request, status

from predictcore.application.dtos.health_dto import HealthDTO
from predictcore.application.use_cases.system_use_cases import GetHealthStatusUseCase
from predictcore.shared import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthDTO)
@inject
async def health(
    request: Request,
    get_health_status_use_case: GetHealthStatusUseCase = Depends(
        Provide["get_health_status_use_case"]
    ),
) -> HealthDTO:
    """Return service availability, the active version and serving counters."""
    started_at = getattr(request.app.state, "started_at", None)
    try:
        health_status = await get_health_status_use_case.execute(started_at)
        logger.debug("health.check.success", status=health_status.status.value)
        return health_status
    except Exception as exc:
        logger.error("health.check.failure", error=str(exc), exc_info=exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to retrieve system health status",
        ) from exc
