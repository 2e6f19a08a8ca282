"""Common Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="Request path of this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    error_id: Optional[str] = Field(None, description="Server-side error reference")


PROBLEM_RESPONSES = {
    400: {"model": Problem, "description": "Invalid input or pricing mismatch"},
    402: {"model": Problem, "description": "Payment declined"},
    404: {"model": Problem, "description": "Unknown or sold-out tour"},
    500: {"model": Problem, "description": "Internal, store or catalog failure"},
}
