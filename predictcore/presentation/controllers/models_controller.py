"""
Models Router - Presentation Layer

This module defines the FastAPI router for model version endpoints.
"""

from typing import List, Optional

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, status

from predictcore.application.dtos.model_dto import (
    ModelConfigDTO,
    ModelVersionResponseDTO,
)
from predictcore.application.dtos.prediction_dto import EvaluationDTO
from predictcore.application.use_cases.model_management import ModelManagementUseCase
from predictcore.domain.entities.model_version import ModelStatus

from .errors import http_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/models", tags=["Models"])


@router.get("", response_model=List[ModelVersionResponseDTO])
@inject
async def list_models(
    model_status: Optional[ModelStatus] = Query(
        None, description="Filter by lifecycle status (candidate, active, retired)"
    ),
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> List[ModelVersionResponseDTO]:
    """List registered model versions ordered by id."""
    try:
        return await use_case.list_versions(model_status)
    except Exception as exc:
        raise http_error(exc, "models.list.failed") from exc


@router.get("/active", response_model=ModelVersionResponseDTO)
@inject
async def get_active_model(
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> ModelVersionResponseDTO:
    """Return the version currently serving predictions."""
    try:
        return await use_case.get_active()
    except Exception as exc:
        raise http_error(exc, "models.active.failed") from exc


@router.get("/{version_id}", response_model=ModelVersionResponseDTO)
@inject
async def get_model(
    version_id: int,
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> ModelVersionResponseDTO:
    try:
        return await use_case.get_version(version_id)
    except Exception as exc:
        raise http_error(exc, "models.get.failed", version_id=version_id) from exc


@router.post(
    "/candidates",
    response_model=ModelVersionResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def propose_candidate(
    config_dto: ModelConfigDTO,
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> ModelVersionResponseDTO:
    """
    Register a new CANDIDATE version. Serving is unaffected until the
    candidate passes shadow evaluation and is promoted.
    """
    try:
        return await use_case.propose(config_dto)
    except Exception as exc:
        raise http_error(exc, "models.propose.failed") from exc


@router.post("/{version_id}/shadow-evaluation", response_model=EvaluationDTO)
@inject
async def shadow_evaluate(
    version_id: int,
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> EvaluationDTO:
    """Evaluate a candidate on held-out data and attach the result to it."""
    try:
        return await use_case.shadow_evaluate(version_id)
    except Exception as exc:
        raise http_error(
            exc, "models.shadow_evaluation.failed", version_id=version_id
        ) from exc


@router.post("/{version_id}/promote", response_model=ModelVersionResponseDTO)
@inject
async def promote(
    version_id: int,
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> ModelVersionResponseDTO:
    """Promote a candidate with a passing evaluation to active."""
    try:
        return await use_case.promote(version_id)
    except Exception as exc:
        raise http_error(exc, "models.promote.failed", version_id=version_id) from exc


@router.post("/{version_id}/rollback", response_model=ModelVersionResponseDTO)
@inject
async def rollback(
    version_id: int,
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> ModelVersionResponseDTO:
    """Re-activate a retired version."""
    try:
        return await use_case.rollback(version_id)
    except Exception as exc:
        raise http_error(exc, "models.rollback.failed", version_id=version_id) from exc


@router.post("/prune", response_model=List[int])
@inject
async def prune_retired(
    keep: int = Query(5, ge=0, description="Number of recent retired versions to keep"),
    use_case: ModelManagementUseCase = Depends(Provide["model_management_use_case"]),
) -> List[int]:
    """Delete old retired versions no cached prediction refers to."""
    try:
        pruned = await use_case.prune(keep)
    except Exception as exc:
        raise http_error(exc, "models.prune.failed") from exc
    logger.info("models.pruned", version_ids=pruned)
    return pruned
