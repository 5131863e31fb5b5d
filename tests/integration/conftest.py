"""
Configuration for integration tests.

The application is built in-process over a seeded in-memory store and
exercised through httpx's ASGI transport, so no server or database is needed.
"""

import pytest
import pytest_asyncio
import httpx
from unittest.mock import AsyncMock, MagicMock

from ar_analytics.adapters.cache.lru_cache import LRUCache
from ar_analytics.adapters.repositories.memory_executor import MemoryPipelineExecutor
from ar_analytics.adapters.tenants.static_resolver import StaticTenantResolver
from ar_analytics.core.ports.exceptions import RepositoryError
from ar_analytics.core.ports.pipeline_executor import PipelineExecutor
from ar_analytics.main import create_app


API_KEY = "secretkey"


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def auth_headers(api_key):
    return {"x-api-key": api_key}


@pytest.fixture
def result_cache():
    return LRUCache(max_entries=64)


@pytest.fixture
def tenant_resolver(tenant, api_key):
    return StaticTenantResolver({api_key: tenant})


@pytest.fixture
def app(seed_documents, tenant, tenant_resolver, result_cache):
    """Application over a store seeded in both collections."""
    executor = MemoryPipelineExecutor({
        (tenant.database, "sites"): seed_documents,
        (tenant.database, "endpoint_group_ar"): seed_documents,
    })
    return create_app(executor=executor, tenant_resolver=tenant_resolver, cache_service=result_cache)


@pytest.fixture
def failing_app(tenant_resolver, result_cache):
    """Application whose store raises on every pipeline."""
    executor = MagicMock(spec=PipelineExecutor)
    executor.execute_pipeline = AsyncMock(side_effect=RepositoryError("Error connecting to store", "timeout"))
    executor.health_check = AsyncMock(return_value=False)
    return create_app(executor=executor, tenant_resolver=tenant_resolver, cache_service=result_cache)


@pytest_asyncio.fixture
async def http_client(app):
    """HTTP client bound to the in-process application."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def failing_client(failing_app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=failing_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def june_params():
    """Query string for the seeded June range."""
    return {"start_time": "2015-06-20T12:00:00Z", "end_time": "2015-06-26T23:00:00Z"}
