from .model_management import ModelManagementUseCase
from .prediction_core import (
    BatchOutcome,
    PipelineState,
    PipelineStateError,
    PredictionCore,
    PredictionSource,
    RequestTrace,
    ServedPrediction,
)
from .system_use_cases import GetHealthStatusUseCase, GetOptimizerStatusUseCase

__all__ = [
    "BatchOutcome",
    "GetHealthStatusUseCase",
    "GetOptimizerStatusUseCase",
    "ModelManagementUseCase",
    "PipelineState",
    "PipelineStateError",
    "PredictionCore",
    "PredictionSource",
    "RequestTrace",
    "ServedPrediction",
]
