"""
Database package - Infrastructure Layer

MongoDB client used by the persistent model store.
"""

from predictcore.infrastructure.database.mongo_database import MongoDatabase

__all__ = ["MongoDatabase"]
