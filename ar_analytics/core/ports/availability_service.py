from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict

from ..domain.filters import AvailabilityQuery
from ..domain.results import EntityLevel, ResultTree
from .tenant_resolver import Tenant


@dataclass(frozen=True)
class RenderedResult:
    """Rendered response payload and where it came from."""
    body: bytes
    media_type: str
    from_cache: bool = False
    record_count: int = 0


class AvailabilityService(ABC):
    """
    Port (interface) for availability/reliability business logic.
    This defines the contract the HTTP and GraphQL adapters depend on.
    """

    @abstractmethod
    async def site_availability(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        """
        Per-site results, no rollup.

        Args:
            tenant: Tenant whose database is queried
            query: Raw request parameters

        Returns:
            RenderedResult in the requested format

        Raises:
            RepositoryError: If the store fails
        """
        pass

    @abstractmethod
    async def group_availability(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        """
        Site results rolled up to their NGI.

        Raises:
            RepositoryError: If the store fails
        """
        pass

    @abstractmethod
    async def supergroup_results(self, tenant: Tenant, query: AvailabilityQuery) -> RenderedResult:
        """
        Results rolled up to the supergroup level for one report.

        Raises:
            RepositoryError: If the store fails
        """
        pass

    @abstractmethod
    async def compute_tree(
        self,
        tenant: Tenant,
        query: AvailabilityQuery,
        level: EntityLevel
    ) -> ResultTree:
        """
        Compute the result tree for a level without rendering or caching.

        Returns:
            ResultTree, empty when the query cannot match any bucket
        """
        pass

    @abstractmethod
    async def clear_cache(self) -> int:
        """Drop cached results. Returns the number of entries removed."""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        pass
