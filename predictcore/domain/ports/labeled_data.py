"""Domain port for the labeled data used by optimization and shadow evaluation."""

from __future__ import annotations

from typing import Protocol

from predictcore.domain.entities.dataset import LabeledDataset


class ILabeledDataProvider(Protocol):
    """Supplies training and held-out labeled records."""

    async def training_set(self) -> LabeledDataset:
        """Records candidates are fitted on."""
        ...

    async def holdout_set(self) -> LabeledDataset:
        """Records never used for fitting; candidates are shadow-evaluated on them."""
        ...
