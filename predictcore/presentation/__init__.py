"""
Presentation Layer Package

FastAPI routers translating HTTP requests into application use cases and
domain errors into HTTP status codes.
"""

from predictcore.presentation import controllers

__all__ = ["controllers"]
