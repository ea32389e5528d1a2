"""
Repositories Package - Infrastructure Layer

Implementations of the model store port. The registry owns the lifecycle
rules; stores only persist versions keyed by id.
"""

from .in_memory_model_store import InMemoryModelStore
from .mongo_model_store import MongoModelStore

__all__ = ["InMemoryModelStore", "MongoModelStore"]
