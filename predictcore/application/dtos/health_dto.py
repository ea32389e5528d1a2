"""DTOs for the system health response."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ServiceStatus(str, Enum):
    """High-level availability of the service."""

    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"


class HealthDTO(BaseModel):
    """DTO representing the /health response payload."""

    status: ServiceStatus = Field(description="Overall service status")
    name: str = Field(description="Application name")
    version: str = Field(description="Application version")
    environment: str = Field(description="Current deployment environment")
    started_at: datetime = Field(description="Application start timestamp")
    uptime_seconds: float = Field(description="Uptime in seconds")
    active_version_id: Optional[int] = Field(
        default=None, description="Model version currently serving"
    )
    cache: Dict[str, int] = Field(default_factory=dict, description="Cache counters")
    monitoring: Dict[str, Any] = Field(
        default_factory=dict, description="Prediction and evaluation counters"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "up",
                "name": "Prediction Core",
                "version": "1.0.0",
                "environment": "development",
                "started_at": "2024-09-09T12:00:00Z",
                "uptime_seconds": 3600.5,
                "active_version_id": 3,
                "cache": {"size": 120, "hits": 940, "misses": 120},
                "monitoring": {"verdicts": {"pass": 12, "degraded": 1}},
            }
        }
    }
