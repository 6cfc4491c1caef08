"""
Common Pydantic schemas used across the API.

This module contains shared schemas for errors, health checks and
request-body validation.
"""

from typing import Any, Dict, Optional, Type, TypeVar
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from datetime import datetime

from services.exceptions import ValidationError

T = TypeVar('T', bound=BaseModel)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
    path: Optional[str] = Field(None, description="Request path that caused the error")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Category not found",
                "details": {"id": "9b2f4c1e-0d7a-4a52-8f0e-3c1d2b6a7e90"},
                "timestamp": "2025-10-15T12:00:00Z",
                "path": "/api/categories"
            }
        }


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database connection status")
    regions: int = Field(..., description="Number of regions loaded")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2025-10-15T12:00:00Z",
                "version": "1.0.0",
                "database": "connected",
                "regions": 2
            }
        }


def parse_body(schema: Type[T], body: Any) -> T:
    """
    Validate a decoded JSON body against a schema.

    Raises:
        ValidationError: With the pydantic error list in details
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return schema.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid request body",
            details={'errors': e.errors(include_url=False, include_context=False)}
        )
