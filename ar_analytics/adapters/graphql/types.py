"""
GraphQL types for the results service.
Strawberry GraphQL type definitions based on domain entities.
"""

from enum import Enum
import strawberry
from typing import List, Optional

from ...core.domain.filters import AvailabilityQuery, DateFormat
from ...core.domain.results import (
    EntityLevel,
    GroupResult as DomainGroupResult,
    ResultRecord as DomainResultRecord,
    ResultTree as DomainResultTree
)


@strawberry.enum
class Level(Enum):
    """Hierarchy level results are reported at."""
    SITE = "site"
    NGI = "ngi"
    SUPERGROUP = "supergroup"

    def to_domain(self) -> EntityLevel:
        return {
            "site": EntityLevel.SITE,
            "ngi": EntityLevel.GROUP,
            "supergroup": EntityLevel.SUPERGROUP,
        }[self.value]


@strawberry.type
class ResultRecord:
    """GraphQL type for one timestamped result."""
    timestamp: str
    availability: float
    reliability: float

    @classmethod
    def from_domain(cls, record: DomainResultRecord, date_format: DateFormat) -> "ResultRecord":
        return cls(
            timestamp=date_format.display(record.bucket),
            availability=record.availability,
            reliability=record.reliability
        )


@strawberry.type
class GroupResult:
    """GraphQL type for a named group and its results."""
    name: str
    type: str
    parent: Optional[str]
    profile: Optional[str]
    namespace: Optional[str]
    results: List[ResultRecord]

    @classmethod
    def from_domain(cls, group: DomainGroupResult, date_format: DateFormat) -> "GroupResult":
        return cls(
            name=group.name,
            type=group.type,
            parent=group.parent,
            profile=group.profile,
            namespace=group.namespace,
            results=[ResultRecord.from_domain(record, date_format) for record in group.results]
        )


@strawberry.type
class ResultTree:
    """GraphQL type for a complete result tree."""
    groups: List[GroupResult]
    total_records: int

    @classmethod
    def from_domain(cls, tree: DomainResultTree, date_format: DateFormat) -> "ResultTree":
        """Convert a domain ResultTree, rendering buckets with the request's date format."""
        return cls(
            groups=[GroupResult.from_domain(group, date_format) for group in tree.groups],
            total_records=tree.total_records
        )


@strawberry.type
class HealthStatus:
    """GraphQL type for health status."""
    status: str
    service: str
    store: str
    cache: str
    timestamp: str


@strawberry.input
class ResultQueryInput:
    """GraphQL input type for result queries."""
    start_time: str
    end_time: str
    level: Level = Level.SUPERGROUP
    granularity: Optional[str] = None
    availability_profiles: Optional[List[str]] = None
    namespaces: Optional[List[str]] = None
    group_names: Optional[List[str]] = None
    report: Optional[str] = None
    group_type: Optional[str] = None
    infrastructure: Optional[str] = None
    certification: Optional[str] = None
    production: Optional[str] = None
    monitored: Optional[str] = None

    def to_domain(self) -> AvailabilityQuery:
        """Convert GraphQL input to a domain AvailabilityQuery."""
        return AvailabilityQuery(
            start_time=self.start_time,
            end_time=self.end_time,
            granularity=self.granularity,
            profiles=tuple(self.availability_profiles or ()),
            namespaces=tuple(self.namespaces or ()),
            group_names=tuple(self.group_names or ()),
            report=self.report,
            group_type=self.group_type,
            infrastructure=self.infrastructure,
            certification=self.certification,
            production=self.production,
            monitored=self.monitored
        )
