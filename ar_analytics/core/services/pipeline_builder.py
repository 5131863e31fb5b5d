"""
Aggregation pipeline construction.

Daily pipelines keep one row per stored sample with the date cut to its day
bucket. Monthly pipelines average the up/down/unknown fractions per month and
identity, then compute availability and reliability inline.
"""

from typing import Tuple

from ..domain.filters import Filter, Granularity
from ..domain.pipeline import (
    Average,
    Between,
    Equals,
    FieldRef,
    Group,
    In,
    Match,
    Predicate,
    Project,
    Sort,
    Stage,
    Substr,
    field_refs,
)
from .availability_calculations import AvailabilityCalculations


DATE_FIELD = "date"

IDENTITY_FIELDS = (
    "infrastructure",
    "certification",
    "production",
    "monitored",
    "namespace",
    "report",
    "site",
    "profile",
    "ngi",
    "supergroup",
)

METRIC_FIELDS = ("uptime", "downtime", "unknown", "availability", "reliability", "weight")

AVERAGED_FIELDS = ("uptime", "downtime", "unknown", "weight")

DAILY_SORT = ("profile", "supergroup", "ngi", "site", DATE_FIELD)
MONTHLY_SORT = ("namespace", "profile", "supergroup", "ngi", "site", DATE_FIELD)


class PipelineBuilder:
    """Builds typed aggregation stages for a filter."""

    def build(self, filter: Filter) -> Tuple[Stage, ...]:
        if filter.granularity == Granularity.MONTHLY:
            return self.monthly(filter)
        return self.daily(filter)

    def match(self, filter: Filter) -> Match:
        """Stage selecting the samples a filter admits."""
        low, high = filter.date_bounds()
        predicates = [Between(DATE_FIELD, low, high)]

        if filter.profiles:
            predicates.append(In("profile", filter.profiles))
        if filter.namespaces:
            predicates.append(In("namespace", filter.namespaces))
        if filter.group_names:
            predicates.append(In(filter.group_field, filter.group_names))
        if filter.report:
            predicates.append(Equals("report", filter.report))

        predicates.extend(self._fixed_constraints(filter))
        return Match(tuple(predicates))

    def daily(self, filter: Filter) -> Tuple[Stage, ...]:
        bucket = Substr(FieldRef(DATE_FIELD), 0, filter.date_format.bucket_length)
        return (
            self.match(filter),
            Project(((DATE_FIELD, bucket),) + field_refs(*IDENTITY_FIELDS, *METRIC_FIELDS)),
            Sort(DAILY_SORT),
        )

    def monthly(self, filter: Filter) -> Tuple[Stage, ...]:
        bucket = Substr(FieldRef(DATE_FIELD), 0, filter.date_format.bucket_length)
        keys = ((DATE_FIELD, bucket),) + field_refs(*IDENTITY_FIELDS)
        accumulators = tuple((name, Average(FieldRef(name))) for name in AVERAGED_FIELDS)

        projection = field_refs(DATE_FIELD, *IDENTITY_FIELDS, *AVERAGED_FIELDS) + (
            ("availability", AvailabilityCalculations.availability_expression()),
            ("reliability", AvailabilityCalculations.reliability_expression()),
        )
        return (
            self.match(filter),
            Group(keys, accumulators),
            Project(projection),
            Sort(MONTHLY_SORT),
        )

    @staticmethod
    def _fixed_constraints(filter: Filter) -> Tuple[Predicate, ...]:
        return (
            Equals("infrastructure", filter.infrastructure),
            Equals("certification", filter.certification),
            Equals("production", filter.production),
            Equals("monitored", filter.monitored),
        )
