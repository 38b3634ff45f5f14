"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service status plus database reachability, for load balancers and monitoring."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: Literal["dev", "test", "prod"] = Field(description="APP_ENV the service runs under")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Whether SELECT 1 succeeded on the account database",
    )
