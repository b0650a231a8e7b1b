"""Pydantic schemas for the app catalog."""

from pydantic import BaseModel, Field


class AppEntry(BaseModel):
    """One entry of a catalog refresh, as reported by Steam."""
    id: int = Field(..., ge=0)
    name: str = ""
