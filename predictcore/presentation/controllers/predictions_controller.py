"""
Predictions Router - Presentation Layer

Serving endpoints. Optimization scheduled by a labeled batch runs in the
background; these endpoints never wait for it.
"""

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from predictcore.application.dtos.prediction_dto import (
    BatchPredictionRequestDTO,
    BatchPredictionResponseDTO,
    PredictionRequestDTO,
    PredictionResponseDTO,
)
from predictcore.application.use_cases.prediction_core import PredictionCore

from .errors import http_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.post("", response_model=PredictionResponseDTO)
@inject
async def predict(
    request_dto: PredictionRequestDTO,
    prediction_core: PredictionCore = Depends(Provide["prediction_core"]),
) -> PredictionResponseDTO:
    """Score a single record against the active model version."""
    try:
        served = await prediction_core.predict(request_dto.features)
    except Exception as exc:
        raise http_error(exc, "predictions.predict.failed") from exc
    return PredictionResponseDTO.from_domain(served)


@router.post("/batch", response_model=BatchPredictionResponseDTO)
@inject
async def predict_batch(
    request_dto: BatchPredictionRequestDTO,
    prediction_core: PredictionCore = Depends(Provide["prediction_core"]),
) -> BatchPredictionResponseDTO:
    """
    Score a batch of records against one model version.

    When ``outcomes`` are provided the batch is evaluated; a FAIL verdict, or
    enough consecutive DEGRADED ones, schedules a background optimization.
    """
    outcomes = (
        [outcome.to_domain() for outcome in request_dto.outcomes]
        if request_dto.outcomes is not None
        else None
    )
    try:
        outcome = await prediction_core.predict_batch(request_dto.records, outcomes)
    except Exception as exc:
        raise http_error(
            exc, "predictions.batch.failed", records=len(request_dto.records)
        ) from exc

    logger.debug(
        "predictions.batch.served",
        records=len(outcome.predictions),
        evaluated=outcome.evaluation is not None,
        optimization_triggered=outcome.optimization_triggered,
    )
    return BatchPredictionResponseDTO.from_domain(outcome)
