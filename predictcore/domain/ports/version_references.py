"""Domain port tracking which model versions are still referenced."""

from __future__ import annotations

from typing import Protocol


class IVersionReferenceTracker(Protocol):
    """Reference counting for model version identities."""

    def retain(self, version_id: int) -> None:
        """Record one more live reference to ``version_id``."""
        ...

    def release(self, version_id: int) -> None:
        """Drop one live reference to ``version_id``."""
        ...
