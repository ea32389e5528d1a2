"""
Model Store Interface

Key-value persistence of model versions, keyed by version id. The storage
format is owned by the implementation.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from predictcore.domain.entities.model_version import ModelVersion


class IModelStore(ABC):
    """Interface for model version store implementations."""

    @abstractmethod
    async def save(self, version: ModelVersion) -> ModelVersion:
        """
        Insert or replace a model version.

        Args:
            version: The version to persist

        Returns:
            The persisted version
        """
        pass

    @abstractmethod
    async def get(self, version_id: int) -> Optional[ModelVersion]:
        """
        Find a model version by id.

        Args:
            version_id: Identifier of the version

        Returns:
            The version if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[ModelVersion]:
        """
        Return every stored version ordered by id.
        """
        pass

    @abstractmethod
    async def delete(self, version_id: int) -> bool:
        """
        Remove a version from the store.

        Returns:
            True when a version was deleted
        """
        pass
