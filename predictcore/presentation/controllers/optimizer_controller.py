"""Optimizer Router - Presentation Layer."""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from predictcore.application.dtos.optimizer_dto import OptimizerStatusDTO
from predictcore.application.use_cases.system_use_cases import (
    GetOptimizerStatusUseCase,
)

from .errors import http_error

router = APIRouter(prefix="/optimizer", tags=["Optimizer"])


@router.get("", response_model=OptimizerStatusDTO)
@inject
async def optimizer_status(
    use_case: GetOptimizerStatusUseCase = Depends(
        Provide["get_optimizer_status_use_case"]
    ),
) -> OptimizerStatusDTO:
    """Report whether an optimization job runs and how the last one ended."""
    try:
        return await use_case.execute()
    except Exception as exc:
        raise http_error(exc, "optimizer.status.failed") from exc
