"""
Request normalization and filter construction.

An ``AvailabilityQuery`` holds the raw request parameters as handed over by the
HTTP layer. ``build_filter`` turns it into a ``Filter``: an immutable predicate
with inclusive integer bucket bounds and the fixed equality constraints that
every query carries. Bad input never raises here; it produces a filter whose
``is_unsatisfiable()`` is true, which callers treat as "no matching buckets".
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .results import EntityLevel


ZULU_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DEFAULT_INFRASTRUCTURE = "Production"
DEFAULT_CERTIFICATION = "Certified"
DEFAULT_FORMAT = "xml"
SUPPORTED_FORMATS = ("xml", "json")


class Granularity(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Granularity"]:
        """Parse a granularity flag; absent means daily, unknown means None."""
        if value is None or not value.strip():
            return cls.DAILY
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class DateFormat:
    """Request-scoped pair of bucket and display date formats."""
    bucket_format: str
    display_format: str
    bucket_length: int

    @classmethod
    def for_granularity(cls, granularity: Optional[Granularity]) -> "DateFormat":
        if granularity == Granularity.MONTHLY:
            return MONTHLY_DATE_FORMAT
        return DAILY_DATE_FORMAT

    def bucket(self, instant: datetime) -> int:
        return int(instant.strftime(self.bucket_format))

    def display(self, bucket: str) -> str:
        """Render a bucket (e.g. ``20150622``) in display form (``2015-06-22``)."""
        try:
            return datetime.strptime(str(bucket), self.bucket_format).strftime(self.display_format)
        except ValueError:
            return str(bucket)


DAILY_DATE_FORMAT = DateFormat("%Y%m%d", "%Y-%m-%d", 8)
MONTHLY_DATE_FORMAT = DateFormat("%Y%m", "%Y-%m", 6)


def yes_no_flag(value: Optional[str]) -> str:
    """Only the literal string ``false`` maps to N; absent or anything else is Y."""
    if value is not None and value == "false":
        return "N"
    return "Y"


def output_format(value: Optional[str]) -> str:
    if value and value.strip().lower() in SUPPORTED_FORMATS:
        return value.strip().lower()
    return DEFAULT_FORMAT


def _canonical_list(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(sorted({value for value in values if value}))


@dataclass(frozen=True)
class AvailabilityQuery:
    """Value object with the request parameters consumed by the core."""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    granularity: Optional[str] = None
    profiles: Tuple[str, ...] = field(default_factory=tuple)
    namespaces: Tuple[str, ...] = field(default_factory=tuple)
    group_names: Tuple[str, ...] = field(default_factory=tuple)
    report: Optional[str] = None
    group_type: Optional[str] = None
    infrastructure: Optional[str] = None
    certification: Optional[str] = None
    production: Optional[str] = None
    monitored: Optional[str] = None
    format: Optional[str] = None

    def canonical_input(self) -> Dict[str, Any]:
        """
        Canonical form used as the cache fingerprint.

        Defaults are applied and list parameters are sorted, so requests that
        differ only in parameter order or in default-equivalent values yield
        the same dictionary.
        """
        granularity = Granularity.parse(self.granularity)
        return {
            "start_time": self.start_time or "",
            "end_time": self.end_time or "",
            "granularity": granularity.value if granularity else f"invalid:{self.granularity}",
            "profiles": ",".join(_canonical_list(self.profiles)),
            "namespaces": ",".join(_canonical_list(self.namespaces)),
            "group_names": ",".join(_canonical_list(self.group_names)),
            "report": self.report or "",
            "group_type": self.group_type or "",
            "infrastructure": self.infrastructure or DEFAULT_INFRASTRUCTURE,
            "certification": self.certification or DEFAULT_CERTIFICATION,
            "production": yes_no_flag(self.production),
            "monitored": yes_no_flag(self.monitored),
            "format": output_format(self.format),
        }


@dataclass(frozen=True)
class Filter:
    """Store-agnostic predicate built for a single request."""
    granularity: Granularity
    start_bucket: int
    end_bucket: int
    infrastructure: str = DEFAULT_INFRASTRUCTURE
    certification: str = DEFAULT_CERTIFICATION
    production: str = "Y"
    monitored: str = "Y"
    profiles: Tuple[str, ...] = field(default_factory=tuple)
    namespaces: Tuple[str, ...] = field(default_factory=tuple)
    group_names: Tuple[str, ...] = field(default_factory=tuple)
    group_field: str = EntityLevel.SUPERGROUP.value
    report: Optional[str] = None
    unsatisfiable: bool = False

    def is_unsatisfiable(self) -> bool:
        return self.unsatisfiable

    @property
    def date_format(self) -> DateFormat:
        return DateFormat.for_granularity(self.granularity)

    def date_bounds(self) -> Tuple[int, int]:
        """Inclusive bounds on the stored YYYYMMDD date matching the bucket range."""
        if self.granularity == Granularity.MONTHLY:
            return self.start_bucket * 100, self.end_bucket * 100 + 99
        return self.start_bucket, self.end_bucket


def _parse_zulu(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, ZULU_FORMAT)
    except ValueError:
        return None


def build_filter(query: AvailabilityQuery, level: EntityLevel = EntityLevel.SUPERGROUP) -> Filter:
    """
    Build the filter for a request.

    Args:
        query: Raw request parameters
        level: Hierarchy level ``group_names`` refer to

    Returns:
        Filter, flagged unsatisfiable when the time range or granularity is unusable
    """
    granularity = Granularity.parse(query.granularity)
    start = _parse_zulu(query.start_time)
    end = _parse_zulu(query.end_time)

    date_format = DateFormat.for_granularity(granularity)
    unsatisfiable = granularity is None or start is None or end is None
    start_bucket = date_format.bucket(start) if start else 0
    end_bucket = date_format.bucket(end) if end else 0
    if start_bucket > end_bucket:
        unsatisfiable = True

    return Filter(
        granularity=granularity or Granularity.DAILY,
        start_bucket=start_bucket,
        end_bucket=end_bucket,
        infrastructure=query.infrastructure or DEFAULT_INFRASTRUCTURE,
        certification=query.certification or DEFAULT_CERTIFICATION,
        production=yes_no_flag(query.production),
        monitored=yes_no_flag(query.monitored),
        profiles=_canonical_list(query.profiles),
        namespaces=_canonical_list(query.namespaces),
        group_names=_canonical_list(query.group_names),
        group_field=level.value,
        report=query.report or None,
        unsatisfiable=unsatisfiable,
    )
