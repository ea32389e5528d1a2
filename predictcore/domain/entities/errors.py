"""
Domain Errors

Error taxonomy of the prediction core. Input and inference errors go back to
the immediate caller; registry and optimizer errors are absorbed by the
orchestrator and surfaced as operational signals only.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MalformedInputError(DomainError):
    """Raised when raw input is missing fields or violates declared types/ranges."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InferenceError(DomainError):
    """Raised when features do not match the model's expected input schema."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InferenceTimeoutError(InferenceError):
    """Raised when inference misses its deadline and nothing stale can be served."""

    def __init__(self, timeout_seconds: float, details: Optional[Dict[str, Any]] = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Inference did not complete within {timeout_seconds:g}s", details
        )


class UnknownVersionError(DomainError):
    """Raised when a model version does not exist or has the wrong status."""

    def __init__(
        self,
        version_id: int,
        reason: str = "not found",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.version_id = version_id
        super().__init__(f"Model version {version_id} {reason}", details)


class NoActiveModelError(DomainError):
    """Raised when serving is requested before any version was activated."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("No active model version is registered", details)


class PromotionRejectedError(DomainError):
    """Raised when a candidate has no passing evaluation attached."""

    def __init__(self, version_id: int, details: Optional[Dict[str, Any]] = None):
        self.version_id = version_id
        super().__init__(
            f"Model version {version_id} has no passing evaluation attached", details
        )


class OptimizationExhaustedError(DomainError):
    """Raised when no improving candidate was found within the trial budget."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ModelConfigurationError(DomainError):
    """Raised when a model configuration fails validation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
