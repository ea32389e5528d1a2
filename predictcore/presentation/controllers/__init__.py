"""
Controllers Package - Presentation Layer

FastAPI controllers (routers) handling HTTP requests and responses. They
validate input, map domain errors to status codes and convert between DTOs
and application objects.
"""

from .models_controller import router as models_router
from .optimizer_controller import router as optimizer_router
from .predictions_controller import router as predictions_router
from .system_controller import router as system_router

__all__ = ["models_router", "optimizer_router", "predictions_router", "system_router"]
