from .sklearn_trainer import SklearnLogisticTrainer

__all__ = ["SklearnLogisticTrainer"]
