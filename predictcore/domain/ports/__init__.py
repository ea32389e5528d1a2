"""Domain ports package."""

from .labeled_data import ILabeledDataProvider
from .model_store import IModelStore
from .model_trainer import IModelTrainer
from .prediction_monitor import IPredictionMetrics, IPredictionMonitor
from .version_references import IVersionReferenceTracker

__all__ = [
    "ILabeledDataProvider",
    "IModelStore",
    "IModelTrainer",
    "IPredictionMetrics",
    "IPredictionMonitor",
    "IVersionReferenceTracker",
]
