"""
Application services: the shared, mutable state of the prediction core and
the background work that changes it.
"""

from .model_registry import ModelRegistry, VersionListener
from .optimization_coordinator import OptimizationCoordinator
from .optimizer import Optimizer
from .prediction_cache import CacheKey, CacheStats, PredictionCache
from .shadow_evaluator import ShadowEvaluator

__all__ = [
    "CacheKey",
    "CacheStats",
    "ModelRegistry",
    "OptimizationCoordinator",
    "Optimizer",
    "PredictionCache",
    "ShadowEvaluator",
    "VersionListener",
]
