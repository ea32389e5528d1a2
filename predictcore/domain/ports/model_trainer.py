"""Domain port for fitting model coefficients."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from predictcore.domain.entities.model_version import Hyperparameters, ModelArchitecture


class IModelTrainer(Protocol):
    """Fits a model on a normalized feature matrix."""

    def train(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        hyperparameters: Hyperparameters,
    ) -> ModelArchitecture:
        """Return trained coefficients for ``features`` (rows) and ``labels``."""
        ...
