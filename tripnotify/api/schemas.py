"""Pydantic response schemas for the HTTP surface."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ServiceStatusResponse(BaseModel):
    status: str = "running"
    service: str
    version: str
    push: str
    state: str
    provider: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    ready: bool
    uptime: float


class ReadinessResponse(BaseModel):
    ready: bool
    state: str


class InitResponse(BaseModel):
    success: bool
    ready: bool
    error: Optional[str] = None
