"""
Prediction Core

Versioned prediction serving with single-flight caching, threshold-based
evaluation and asynchronous re-optimization.
"""

__version__ = "1.0.0"
