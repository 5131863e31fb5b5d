from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntityLevel(str, Enum):
    """Levels of the monitoring hierarchy, valued by their document field name."""
    SITE = "site"
    GROUP = "ngi"
    SUPERGROUP = "supergroup"

    @property
    def label(self) -> str:
        return {"site": "SITE", "ngi": "NGI", "supergroup": "GROUP"}[self.value]


@dataclass(frozen=True)
class AggregationResult:
    """Value object for one (entity, bucket) row produced by a pipeline or a rollup."""
    bucket: str
    site: Optional[str] = None
    ngi: Optional[str] = None
    supergroup: Optional[str] = None
    profile: Optional[str] = None
    namespace: Optional[str] = None
    report: Optional[str] = None
    availability: Optional[float] = None
    reliability: Optional[float] = None
    weight: Optional[float] = None
    uptime: Optional[float] = None
    downtime: Optional[float] = None
    unknown: Optional[float] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AggregationResult":
        """Build a result from a store row using the document field names."""
        return cls(
            bucket=str(row.get("date", "")),
            site=row.get("site"),
            ngi=row.get("ngi"),
            supergroup=row.get("supergroup"),
            profile=row.get("profile"),
            namespace=row.get("namespace"),
            report=row.get("report"),
            availability=_as_float(row.get("availability")),
            reliability=_as_float(row.get("reliability")),
            weight=_as_float(row.get("weight")),
            uptime=_as_float(row.get("uptime")),
            downtime=_as_float(row.get("downtime")),
            unknown=_as_float(row.get("unknown")),
        )

    def entity(self, level: EntityLevel) -> Optional[str]:
        """Name of the entity this row belongs to at the given hierarchy level."""
        return getattr(self, level.value)

    @property
    def has_metrics(self) -> bool:
        return self.availability is not None and self.reliability is not None

    def with_metrics(self, availability: float, reliability: float) -> "AggregationResult":
        return replace(self, availability=availability, reliability=reliability)


@dataclass(frozen=True)
class ResultRecord:
    """Single timestamped availability/reliability value."""
    bucket: str
    availability: float
    reliability: float


@dataclass(frozen=True)
class GroupResult:
    """Top-level node of a result tree."""
    name: str
    type: str
    results: Tuple[ResultRecord, ...] = field(default_factory=tuple)
    parent: Optional[str] = None
    profile: Optional[str] = None
    namespace: Optional[str] = None


# (entity name, profile, namespace)
GroupKey = Tuple[str, Optional[str], Optional[str]]


def sort_key(key: Tuple[Optional[str], ...]) -> Tuple[str, ...]:
    """Sortable form of a key whose parts may be None (missing profile or namespace)."""
    return tuple(part or "" for part in key)


@dataclass(frozen=True)
class ResultTree:
    """Ordered groups, each with results ordered by ascending bucket."""
    groups: Tuple[GroupResult, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not any(group.results for group in self.groups)

    @property
    def total_records(self) -> int:
        return sum(len(group.results) for group in self.groups)

    @classmethod
    def from_results(cls, results, level: EntityLevel, group_type: Optional[str] = None) -> "ResultTree":
        """
        Group rows by their entity at ``level``.

        An entity reported under several profiles or namespaces yields one
        group per (profile, namespace) so every group holds at most one
        record per bucket.

        Args:
            results: AggregationResult rows (any order)
            level: Hierarchy level the rows describe
            group_type: Type label to render, defaults to the level label

        Returns:
            ResultTree with groups sorted by name, profile and namespace and
            records sorted by bucket
        """
        label = group_type or level.label
        parent_level = {
            EntityLevel.SITE: EntityLevel.GROUP,
            EntityLevel.GROUP: EntityLevel.SUPERGROUP,
        }.get(level)

        grouped: Dict[GroupKey, list] = {}
        parents: Dict[GroupKey, Optional[str]] = {}
        for row in results:
            name = row.entity(level)
            if name is None:
                continue
            key = (name, row.profile, row.namespace)
            grouped.setdefault(key, []).append(
                ResultRecord(bucket=row.bucket, availability=row.availability, reliability=row.reliability)
            )
            if parent_level is not None and key not in parents:
                parents[key] = row.entity(parent_level)

        groups = tuple(
            GroupResult(
                name=key[0],
                type=label,
                results=tuple(sorted(grouped[key], key=lambda record: record.bucket)),
                parent=parents.get(key),
                profile=key[1],
                namespace=key[2],
            )
            for key in sorted(grouped, key=sort_key)
        )
        return cls(groups=groups)


def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # pandas hands missing values back as NaN
    if result != result:
        return None
    return result
