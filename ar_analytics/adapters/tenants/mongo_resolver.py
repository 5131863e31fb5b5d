"""
Tenant resolver reading the ``tenants`` collection of the core database.

Each tenant document lists its users with their API keys and one or more
database configurations; the first configuration is the tenant's data store.
"""

from typing import Optional
import asyncio
import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from ...core.ports.exceptions import AuthenticationError, RepositoryError
from ...core.ports.tenant_resolver import Tenant, TenantResolver


class MongoTenantResolver(TenantResolver):
    """Resolves API keys against tenant documents stored in MongoDB."""

    def __init__(self, client: MongoClient, database: str, collection: str = "tenants"):
        self.client = client
        self.database = database
        self.collection = collection
        self.logger = logging.getLogger(__name__)

    async def resolve(self, api_key: Optional[str]) -> Tenant:
        if not api_key:
            raise AuthenticationError()

        try:
            document = await asyncio.to_thread(
                self.client[self.database][self.collection].find_one,
                {"users.api_key": api_key},
                {"name": 1, "db_conf": 1},
            )
        except PyMongoError as e:
            self.logger.error(f"Error resolving tenant: {e}")
            raise RepositoryError("Failed to resolve tenant", e)

        if not document or not document.get("db_conf"):
            self.logger.warning("Rejected request with unknown API key")
            raise AuthenticationError()

        return Tenant(name=document.get("name", ""), database=document["db_conf"][0]["database"])
