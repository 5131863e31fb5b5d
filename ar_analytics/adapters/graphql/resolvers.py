"""
GraphQL resolvers for the results service.
Implements GraphQL query resolvers on top of the availability service port.
"""

import strawberry
from strawberry.types import Info
from typing import Optional
import logging
from datetime import datetime

from ...core.domain.filters import build_filter
from ...core.ports.availability_service import AvailabilityService
from ...core.ports.exceptions import AnalyticsServiceError
from ...core.ports.tenant_resolver import TenantResolver
from .types import HealthStatus, ResultQueryInput, ResultTree


# Global variables to store dependencies (will be set by create_graphql_query)
_availability_service: Optional[AvailabilityService] = None
_tenant_resolver: Optional[TenantResolver] = None
_logger = logging.getLogger(__name__)


@strawberry.type
class Query:
    """GraphQL Query resolvers for the results service."""

    @strawberry.field
    async def group_results(self, info: Info, input: ResultQueryInput) -> ResultTree:
        """
        Compute results for a level of the hierarchy.

        Args:
            input: Time range, granularity, level and optional filters

        Returns:
            ResultTree with groups ordered by name and results by timestamp
        """
        _logger.info(f"GraphQL query: groupResults - level: {input.level.value}")
        if _availability_service is None or _tenant_resolver is None:
            raise Exception("Availability service not initialized")

        request = info.context["request"]
        tenant = await _tenant_resolver.resolve(request.headers.get("x-api-key"))

        query = input.to_domain()
        level = input.level.to_domain()
        try:
            tree = await _availability_service.compute_tree(tenant, query, level)
        except AnalyticsServiceError as e:
            _logger.error(f"Error in groupResults: {e.message}")
            raise Exception(f"Failed to compute results: {e.message}")

        return ResultTree.from_domain(tree, build_filter(query, level).date_format)

    @strawberry.field
    async def availability_health(self) -> HealthStatus:
        """Health status of the service and its store."""
        _logger.info("GraphQL query: availabilityHealth")
        if _availability_service is None:
            raise Exception("Availability service not initialized")

        details = await _availability_service.health_check()
        return HealthStatus(
            status=details["status"],
            service="availability",
            store=details["store"],
            cache=details["cache"],
            timestamp=datetime.now().isoformat()
        )


def create_graphql_query(availability_service: AvailabilityService, tenant_resolver: TenantResolver) -> type:
    """
    Factory function to create GraphQL Query with injected dependencies.

    Args:
        availability_service: Implementation of the AvailabilityService port
        tenant_resolver: Maps the x-api-key header to a tenant

    Returns:
        Query type bound to the injected dependencies
    """
    global _availability_service, _tenant_resolver
    _availability_service = availability_service
    _tenant_resolver = tenant_resolver
    return Query
