"""Request and response bodies of the HTTP API."""

from typing import Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    answer: str


class ErrorResponse(BaseModel):
    error: str
    upstream_status: Optional[int] = None
