"""
Monitoring strategies for the prediction core.

Strategies are combined with ``CompositePredictionMonitor`` instead of being
extended by inheritance.
"""

from .monitors import (
    CompositePredictionMonitor,
    MetricsPredictionMonitor,
    StructlogPredictionMonitor,
)

__all__ = [
    "CompositePredictionMonitor",
    "MetricsPredictionMonitor",
    "StructlogPredictionMonitor",
]
