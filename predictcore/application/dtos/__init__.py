"""
DTOs Package - Application Layer

Data Transfer Objects exchanged between the application layer and the
presentation layer.
"""

from .health_dto import HealthDTO, ServiceStatus
from .model_dto import (
    ArchitectureDTO,
    EvaluationSummaryDTO,
    FeatureSpecDTO,
    HyperparametersDTO,
    ModelConfigDTO,
    ModelVersionResponseDTO,
)
from .optimizer_dto import OptimizationOutcomeDTO, OptimizerStatusDTO
from .prediction_dto import (
    BatchPredictionRequestDTO,
    BatchPredictionResponseDTO,
    EvaluationDTO,
    MetricScoreDTO,
    OutcomeDTO,
    PredictionRequestDTO,
    PredictionResponseDTO,
)

__all__ = [
    "ArchitectureDTO",
    "BatchPredictionRequestDTO",
    "BatchPredictionResponseDTO",
    "EvaluationDTO",
    "EvaluationSummaryDTO",
    "FeatureSpecDTO",
    "HealthDTO",
    "HyperparametersDTO",
    "MetricScoreDTO",
    "ModelConfigDTO",
    "ModelVersionResponseDTO",
    "OptimizationOutcomeDTO",
    "OptimizerStatusDTO",
    "OutcomeDTO",
    "PredictionRequestDTO",
    "PredictionResponseDTO",
    "ServiceStatus",
]
