"""
Models package for infrastructure layer.
Contains Pydantic models for request/response serialization.
"""

from .models import (
    ResultQueryModel,
    ErrorResponse,
    HealthResponse,
    CacheClearResponse
)

__all__ = [
    "ResultQueryModel",
    "ErrorResponse",
    "HealthResponse",
    "CacheClearResponse"
]
