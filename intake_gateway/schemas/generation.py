"""Pydantic schemas for the text generation proxy."""

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="Prompt assembled by the chat client.")


class GenerateResponse(BaseModel):
    text: str = Field(..., description="Model completion.")
