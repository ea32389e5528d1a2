"""
Model training - Infrastructure Layer

Fits logistic regression coefficients with scikit-learn. The fitted estimator
is discarded; only its coefficients are kept in the model version, so
serving never depends on a pickled estimator.
"""

import numpy as np
import structlog
from sklearn.linear_model import LogisticRegression

from predictcore.domain.entities.errors import ModelConfigurationError
from predictcore.domain.entities.model_version import (
    Hyperparameters,
    ModelArchitecture,
    ModelKind,
)

logger = structlog.get_logger(__name__)


class SklearnLogisticTrainer:
    """IModelTrainer backed by ``sklearn.linear_model.LogisticRegression``."""

    def __init__(self, seed: int = 0):
        self.seed = seed

    def train(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        hyperparameters: Hyperparameters,
    ) -> ModelArchitecture:
        if features.ndim != 2 or features.shape[0] != labels.shape[0]:
            raise ModelConfigurationError(
                "Feature matrix and labels are misaligned",
                details={
                    "features_shape": list(features.shape),
                    "labels": int(labels.shape[0]),
                },
            )

        # all columns dropped: the model reduces to the class prior
        if features.shape[1] == 0:
            positive_rate = float(np.clip(labels.mean(), 1e-6, 1 - 1e-6))
            return ModelArchitecture(
                kind=ModelKind.LOGISTIC,
                weights=(),
                bias=float(np.log(positive_rate / (1 - positive_rate))),
            )

        estimator = LogisticRegression(
            C=1.0 / hyperparameters.regularization,
            class_weight=hyperparameters.class_weight,
            max_iter=hyperparameters.max_iter,
            random_state=self.seed,
        )
        estimator.fit(features, labels)
        logger.debug(
            "trainer.fitted",
            samples=int(features.shape[0]),
            columns=int(features.shape[1]),
            iterations=int(np.max(estimator.n_iter_)),
        )
        return ModelArchitecture(
            kind=ModelKind.LOGISTIC,
            weights=tuple(float(w) for w in estimator.coef_[0]),
            bias=float(estimator.intercept_[0]),
        )
