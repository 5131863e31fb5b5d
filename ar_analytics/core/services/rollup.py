"""
Weighted rollup of per-entity results into parent-entity results.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..domain.results import AggregationResult, EntityLevel, sort_key


HIERARCHY = (EntityLevel.SITE, EntityLevel.GROUP, EntityLevel.SUPERGROUP)


class RollupPolicy(str, Enum):
    # one-shot rollup from site rows with the original site weights
    FLAT = "flat"
    # level by level, parents weighted by the sum of their children's weights
    REGENERATED = "regenerated"


class RollupEngine:
    """
    Combines rows sharing a parent entity, profile, namespace and bucket into
    one weighted row. Profiles and namespaces are never mixed.

    rolled = sum(weight_i * value_i) / sum(weight_i), computed separately for
    availability and reliability. Zero or missing weights are skipped; a
    bucket with no positive weight is dropped.
    """

    def __init__(self, policy: RollupPolicy = RollupPolicy.FLAT):
        self.policy = policy

    def rollup(self, rows: Iterable[AggregationResult], level: EntityLevel) -> List[AggregationResult]:
        """
        Roll rows up to a single parent level.

        Args:
            rows: Fully materialized child rows
            level: Parent level to aggregate into

        Returns:
            Parent rows ordered by parent name, profile, namespace and bucket
        """
        buckets: Dict[Tuple[Optional[str], ...], List[AggregationResult]] = {}
        for row in rows:
            parent = row.entity(level)
            if parent is None:
                continue
            buckets.setdefault((parent, row.profile, row.namespace, row.bucket), []).append(row)

        rolled = []
        for key in sorted(buckets, key=sort_key):
            result = self._weighted(key[3], level, buckets[key])
            if result is not None:
                rolled.append(result)
        return rolled

    def rollup_hierarchy(
        self,
        rows: Iterable[AggregationResult],
        target: EntityLevel,
        source: EntityLevel = EntityLevel.SITE
    ) -> List[AggregationResult]:
        """Roll rows from ``source`` up to ``target`` according to the policy."""
        levels = self._levels_between(source, target)
        if not levels:
            return sorted(rows, key=lambda row: sort_key(
                (row.entity(target), row.profile, row.namespace, row.bucket)
            ))

        if self.policy == RollupPolicy.FLAT:
            return self.rollup(rows, target)

        current: Sequence[AggregationResult] = list(rows)
        for level in levels:
            current = self.rollup(current, level)
        return list(current)

    @staticmethod
    def _levels_between(source: EntityLevel, target: EntityLevel) -> Tuple[EntityLevel, ...]:
        start = HIERARCHY.index(source)
        end = HIERARCHY.index(target)
        if end < start:
            raise ValueError(f"Cannot roll {source.value} rows down to {target.value}")
        return HIERARCHY[start + 1:end + 1]

    @staticmethod
    def _weighted(
        bucket: str,
        level: EntityLevel,
        constituents: List[AggregationResult]
    ) -> Optional[AggregationResult]:
        total_weight = 0.0
        availability_sum = 0.0
        reliability_sum = 0.0

        for row in constituents:
            if not row.weight or row.weight <= 0 or not row.has_metrics:
                continue
            total_weight += row.weight
            availability_sum += row.weight * row.availability
            reliability_sum += row.weight * row.reliability

        if total_weight == 0:
            return None

        first = constituents[0]
        # keep the ancestors above the parent so later levels can still group
        ancestors = {}
        for upper in HIERARCHY[HIERARCHY.index(level):]:
            ancestors[upper.value] = first.entity(upper)

        return AggregationResult(
            bucket=bucket,
            profile=first.profile,
            namespace=first.namespace,
            report=first.report,
            availability=availability_sum / total_weight,
            reliability=reliability_sum / total_weight,
            weight=total_weight,
            **ancestors,
        )
