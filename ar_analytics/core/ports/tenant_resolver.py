from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Tenant:
    """Value object naming a tenant and the database its data lives in."""
    name: str
    database: str


class TenantResolver(ABC):
    """
    Port (interface) mapping an API key to the tenant database to query.
    """

    @abstractmethod
    async def resolve(self, api_key: Optional[str]) -> Tenant:
        """
        Resolve the tenant owning an API key.

        Raises:
            AuthenticationError: If the key is missing or unknown
        """
        pass
