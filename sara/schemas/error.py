"""Standardized error response schema."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error body for domain exceptions (4xx/5xx)."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    detail: str = Field(..., description="Same message, under the key FastAPI clients expect")
    code: str = Field(..., description="Machine-readable error code")
