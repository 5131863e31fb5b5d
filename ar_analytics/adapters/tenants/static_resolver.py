"""
Tenant resolver backed by a fixed API key mapping.
"""

from typing import Dict, Optional

from ...core.ports.exceptions import AuthenticationError, ConfigurationError
from ...core.ports.tenant_resolver import Tenant, TenantResolver


class StaticTenantResolver(TenantResolver):
    """Resolves API keys from an in-memory mapping."""

    def __init__(self, tenants: Dict[str, Tenant]):
        self._tenants = dict(tenants)

    @classmethod
    def from_string(cls, value: str) -> "StaticTenantResolver":
        """
        Parse ``key=tenant:database`` entries separated by commas.

        Example: ``secretkey=EGI:argo_egi,other=Westeros:argo_westeros``
        """
        tenants = {}
        for entry in filter(None, (part.strip() for part in value.split(","))):
            try:
                api_key, target = entry.split("=", 1)
                name, database = target.split(":", 1)
            except ValueError:
                raise ConfigurationError(f"Invalid tenant entry: {entry!r}")
            tenants[api_key.strip()] = Tenant(name=name.strip(), database=database.strip())
        return cls(tenants)

    async def resolve(self, api_key: Optional[str]) -> Tenant:
        if not api_key or api_key not in self._tenants:
            raise AuthenticationError()
        return self._tenants[api_key]
