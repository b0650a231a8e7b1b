"""Shared Pydantic schemas for SteamHistory."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "steamhistory"


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""
