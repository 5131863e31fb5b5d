"""
Pydantic models for FastAPI request/response serialization.
These models handle the conversion between HTTP and domain objects.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime

from ...core.domain.filters import AvailabilityQuery


class ResultQueryModel(BaseModel):
    """Query parameters shared by the results endpoints."""
    start_time: Optional[str] = Field(None, description="Start of the range, e.g. 2015-06-20T12:00:00Z")
    end_time: Optional[str] = Field(None, description="End of the range, e.g. 2015-06-23T23:00:00Z")
    granularity: Optional[str] = Field(None, description="daily (default) or monthly")
    availability_profile: List[str] = Field(default_factory=list, description="Availability profiles")
    namespace: List[str] = Field(default_factory=list, description="Profile namespaces")
    group_name: List[str] = Field(default_factory=list, description="Entity names at the endpoint level")
    infrastructure: Optional[str] = Field(None, description="Infrastructure, defaults to Production")
    certification: Optional[str] = Field(None, description="Certification, defaults to Certified")
    production: Optional[str] = Field(None, description="'false' selects non-production entities")
    monitored: Optional[str] = Field(None, description="'false' selects unmonitored entities")
    format: Optional[str] = Field(None, description="xml (default) or json")

    @field_validator(
        'start_time', 'end_time', 'granularity', 'infrastructure',
        'certification', 'production', 'monitored', 'format',
        mode='before'
    )
    @classmethod
    def empty_as_none(cls, v):
        """Convert empty strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('availability_profile', 'namespace', 'group_name', mode='before')
    @classmethod
    def split_lists(cls, v):
        """Accept repeated parameters as well as comma separated values."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        values = []
        for item in v:
            values.extend(part.strip() for part in str(item).split(",") if part.strip())
        return values

    def to_domain(self, report: Optional[str] = None, group_type: Optional[str] = None) -> AvailabilityQuery:
        """Convert to domain object."""
        return AvailabilityQuery(
            start_time=self.start_time,
            end_time=self.end_time,
            granularity=self.granularity,
            profiles=tuple(self.availability_profile),
            namespaces=tuple(self.namespace),
            group_names=tuple(self.group_name),
            report=report,
            group_type=group_type,
            infrastructure=self.infrastructure,
            certification=self.certification,
            production=self.production,
            monitored=self.monitored,
            format=self.format
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[str] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    timestamp: datetime = Field(..., description="Health check timestamp")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional health information")


class CacheClearResponse(BaseModel):
    """Response of the cache clear endpoint."""
    cleared: int = Field(..., ge=0, description="Number of cached results removed")
    timestamp: datetime = Field(default_factory=datetime.now)
