"""
Test configuration and fixtures for unit tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from ar_analytics.adapters.cache.lru_cache import LRUCache
from ar_analytics.adapters.render.formatter import ResponseFormatter
from ar_analytics.adapters.repositories.memory_executor import MemoryPipelineExecutor
from ar_analytics.core.domain.results import AggregationResult
from ar_analytics.core.ports.logger import Logger
from ar_analytics.core.ports.pipeline_executor import PipelineExecutor
from ar_analytics.core.services.availability_service_impl import AvailabilityServiceImpl


@pytest.fixture
def memory_executor(seed_documents, tenant):
    """Fixture providing an in-memory store seeded in both collections."""
    return MemoryPipelineExecutor({
        (tenant.database, "sites"): seed_documents,
        (tenant.database, "endpoint_group_ar"): seed_documents,
    })


@pytest.fixture
def mock_executor():
    """Fixture providing a mock PipelineExecutor returning no rows."""
    mock_exec = MagicMock(spec=PipelineExecutor)
    mock_exec.execute_pipeline = AsyncMock(return_value=[])
    mock_exec.health_check = AsyncMock(return_value=True)
    return mock_exec


@pytest.fixture
def lru_cache():
    """Fixture providing an empty LRU cache."""
    return LRUCache(max_entries=16)


@pytest.fixture
def service(memory_executor, lru_cache):
    """Fixture providing the availability service over the seeded store."""
    return AvailabilityServiceImpl(
        executor=memory_executor,
        formatter=ResponseFormatter(),
        cache_service=lru_cache
    )


@pytest.fixture
def site_rows():
    """Fixture providing site level results for two NGIs in one supergroup."""
    return [
        AggregationResult(bucket="20150622", site="S1", ngi="N1", supergroup="G", availability=100.0,
                          reliability=100.0, weight=1.0),
        AggregationResult(bucket="20150622", site="S2", ngi="N1", supergroup="G", availability=0.0,
                          reliability=0.0, weight=3.0),
        AggregationResult(bucket="20150622", site="S3", ngi="N2", supergroup="G", availability=50.0,
                          reliability=80.0, weight=4.0),
    ]


@pytest.fixture
def mock_logger():
    """Fixture providing a mock Logger."""
    mock_logger = MagicMock(spec=Logger)
    return mock_logger
