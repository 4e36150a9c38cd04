"""Pydantic schemas for staff access."""

from pydantic import BaseModel, Field


class InternalLoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=256, description="Staff access password.")
