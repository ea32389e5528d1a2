"""Translation of domain errors into HTTP errors."""

from typing import Any, Dict, Type

import structlog
from fastapi import HTTPException, status

from predictcore.domain.entities.errors import (
    DomainError,
    InferenceError,
    InferenceTimeoutError,
    MalformedInputError,
    ModelConfigurationError,
    NoActiveModelError,
    PromotionRejectedError,
    UnknownVersionError,
)

logger = structlog.get_logger(__name__)

# checked in order; subclasses before their bases
STATUS_BY_ERROR: Dict[Type[DomainError], int] = {
    MalformedInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ModelConfigurationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InferenceTimeoutError: status.HTTP_504_GATEWAY_TIMEOUT,
    InferenceError: status.HTTP_400_BAD_REQUEST,
    UnknownVersionError: status.HTTP_404_NOT_FOUND,
    NoActiveModelError: status.HTTP_503_SERVICE_UNAVAILABLE,
    PromotionRejectedError: status.HTTP_409_CONFLICT,
}


def http_error(exc: Exception, event: str, **context: Any) -> HTTPException:
    """Build the HTTPException for ``exc`` and log it under ``event``."""
    if isinstance(exc, DomainError):
        for error_type, status_code in STATUS_BY_ERROR.items():
            if isinstance(exc, error_type):
                logger.warning(event, error=exc.message, details=exc.details, **context)
                detail = {"message": exc.message, **exc.details} if exc.details else exc.message
                return HTTPException(status_code=status_code, detail=detail)

    logger.error(event, error=str(exc), exc_info=exc, **context)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
