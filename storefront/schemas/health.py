"""Pydantic schemas for health check responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthData(BaseModel):
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    success: bool = True
    message: str = "Server is running"
    timestamp: datetime
    data: HealthData
