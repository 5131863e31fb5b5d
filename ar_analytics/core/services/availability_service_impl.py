"""
Implementation of the AvailabilityService port.
This service orchestrates filter construction, store access, formulas, rollup,
rendering and the result cache.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
import asyncio
import logging

from ..domain.filters import AvailabilityQuery, build_filter, output_format
from ..domain.results import AggregationResult, EntityLevel, ResultTree
from ..ports.availability_service import AvailabilityService, RenderedResult
from ..ports.cache_service import CacheKeyPatterns, CacheService, CacheTTL
from ..ports.exceptions import AnalyticsServiceError, FormulaError
from ..ports.pipeline_executor import PipelineExecutor
from ..ports.tenant_resolver import Tenant
from .availability_calculations import AvailabilityCalculations
from .pipeline_builder import PipelineBuilder
from .rollup import RollupEngine, RollupPolicy


class AvailabilityServiceImpl(AvailabilityService):
    """
    Concrete implementation of the AvailabilityService port.

    Per request: normalize, look the fingerprint up in the cache, otherwise
    build the filter and pipeline, execute it, materialize metrics, roll up,
    render and write the payload back when it is not empty. Computations of
    the same cache key are serialized so only one task writes each entry.
    """

    def __init__(
        self,
        executor: PipelineExecutor,
        formatter,
        cache_service: Optional[CacheService] = None,
        rollup_policy: RollupPolicy = RollupPolicy.FLAT,
        sites_collection: str = "sites",
        results_collection: str = "endpoint_group_ar",
        cache_ttl: Optional[int] = CacheTTL.LONG,
        logger=None
    ):
        """
        Initialize the service with its dependencies.

        Args:
            executor: Store adapter running typed pipelines
            formatter: Renders ResultTrees into XML/JSON bytes
            cache_service: Result cache (optional)
            rollup_policy: Multi-level rollup policy
            sites_collection: Collection with per-site samples
            results_collection: Collection with endpoint group samples
            cache_ttl: TTL handed to the cache on writes
            logger: Logger port implementation, module logger by default
        """
        self.executor = executor
        self.formatter = formatter
        self.cache = cache_service
        self.builder = PipelineBuilder()
        self.rollup_engine = RollupEngine(rollup_policy)
        self.sites_collection = sites_collection
        self.results_collection = results_collection
        self.cache_ttl = cache_ttl
        self.logger = logger or logging.getLogger(__name__)
        self._locks: Dict[str, list] = {}

    async def site_availability(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        return await self._serve(CacheKeyPatterns.SITES, tenant, query, EntityLevel.SITE)

    async def group_availability(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        return await self._serve(CacheKeyPatterns.NGIS, tenant, query, EntityLevel.GROUP)

    async def supergroup_results(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        return await self._serve(CacheKeyPatterns.RESULTS, tenant, query, EntityLevel.SUPERGROUP)

    async def compute_tree(
        self,
        tenant: Tenant,
        query: AvailabilityQuery,
        level: EntityLevel
    ) -> ResultTree:
        """Compute the result tree for one request without touching the cache."""
        filter = build_filter(query, level)
        if filter.is_unsatisfiable():
            self.logger.warning(
                f"Query cannot match any bucket (start={query.start_time}, end={query.end_time}, "
                f"granularity={query.granularity}), skipping store"
            )
            return ResultTree()

        collection = self.results_collection if level == EntityLevel.SUPERGROUP else self.sites_collection
        stages = self.builder.build(filter)
        rows = await self.executor.execute_pipeline(tenant.database, collection, stages)

        results = self._materialize(rows)
        if level != EntityLevel.SITE:
            results = self.rollup_engine.rollup_hierarchy(results, level)

        group_type = query.group_type if level == EntityLevel.SUPERGROUP else None
        tree = ResultTree.from_results(results, level, group_type=group_type)
        self.logger.info(
            f"Computed {tree.total_records} {level.value} results in {len(tree.groups)} groups "
            f"from {len(rows)} rows for tenant {tenant.name}"
        )
        return tree

    async def clear_cache(self) -> int:
        if self.cache is None:
            return 0
        removed = 0
        try:
            for endpoint in (CacheKeyPatterns.SITES, CacheKeyPatterns.NGIS, CacheKeyPatterns.RESULTS):
                removed += await self.cache.clear_pattern(f"{endpoint}:*")
        except Exception as e:
            self.logger.error(f"Error clearing result cache: {e}")
            raise AnalyticsServiceError("Failed to clear result cache", str(e))
        self.logger.info(f"Cleared {removed} cached results")
        return removed

    async def health_check(self) -> Dict[str, Any]:
        store_healthy = await self.executor.health_check()
        return {
            "status": "healthy" if store_healthy else "degraded",
            "store": "healthy" if store_healthy else "unhealthy",
            "cache": "enabled" if self.cache is not None else "disabled",
            "rollup_policy": self.rollup_engine.policy.value,
        }

    async def _serve(
        self,
        endpoint: str,
        tenant: Tenant,
        query: AvailabilityQuery,
        level: EntityLevel
    ) -> RenderedResult:
        if self.cache is None:
            return await self._render(tenant, query, level)

        # the tenant database is part of the fingerprint so tenants never share entries
        canonical = dict(query.canonical_input(), tenant=tenant.database)
        media_type = self.formatter.media_type(query.format)

        hit, payload = await self.cache.lookup(endpoint, canonical)
        if hit:
            self.logger.debug(f"Cache hit for {endpoint}")
            return RenderedResult(body=payload, media_type=media_type, from_cache=True)

        key = self.cache.generate_cache_key(endpoint, **canonical)
        async with self._key_lock(key):
            # another task may have filled the entry while this one waited
            hit, payload = await self.cache.lookup(endpoint, canonical)
            if hit:
                return RenderedResult(body=payload, media_type=media_type, from_cache=True)

            rendered = await self._render(tenant, query, level)
            if rendered.record_count:
                await self.cache.store(endpoint, canonical, rendered.body, self.cache_ttl)
            else:
                self.logger.debug(f"Empty {endpoint} result not cached")
            return rendered

    async def _render(self, tenant: Tenant, query: AvailabilityQuery, level: EntityLevel) -> RenderedResult:
        fmt = output_format(query.format)
        tree = await self.compute_tree(tenant, query, level)
        date_format = build_filter(query, level).date_format
        return RenderedResult(
            body=self.formatter.render(tree, fmt, date_format),
            media_type=self.formatter.media_type(fmt),
            record_count=tree.total_records,
        )

    def _materialize(self, rows: List[Dict[str, Any]]) -> List[AggregationResult]:
        """Convert rows, computing missing metrics and dropping non-finite ones."""
        results = []
        for row in rows:
            result = AggregationResult.from_row(row)
            try:
                results.append(self._with_metrics(result))
            except FormulaError as e:
                self.logger.warning(
                    f"Dropping {result.site or result.ngi or result.supergroup} bucket {result.bucket}: {e.message}"
                )
        return results

    @staticmethod
    def _with_metrics(result: AggregationResult) -> AggregationResult:
        up, down, unknown = result.uptime, result.downtime, result.unknown
        if result.has_metrics:
            return result.with_metrics(
                AvailabilityCalculations.ensure_finite("availability", result.availability, up, down, unknown),
                AvailabilityCalculations.ensure_finite("reliability", result.reliability, up, down, unknown),
            )
        if up is None or unknown is None:
            raise FormulaError("availability", up, down, unknown)
        availability = (
            result.availability if result.availability is not None
            else AvailabilityCalculations.calculate_availability(up, unknown, down or 0.0)
        )
        if result.reliability is None and down is None:
            raise FormulaError("reliability", up, down, unknown)
        reliability = (
            result.reliability if result.reliability is not None
            else AvailabilityCalculations.calculate_reliability(up, unknown, down)
        )
        return result.with_metrics(
            AvailabilityCalculations.ensure_finite("availability", availability, up, down, unknown),
            AvailabilityCalculations.ensure_finite("reliability", reliability, up, down, unknown),
        )

    @asynccontextmanager
    async def _key_lock(self, key: str):
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._locks.pop(key, None)
