"""
Main application entry point for the A/R results service.
Sets up FastAPI app with dependency injection and error handling.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from .core.services.availability_service_impl import AvailabilityServiceImpl
from .core.services.rollup import RollupPolicy
from .core.ports.cache_service import CacheService
from .core.ports.exceptions import ConfigurationError
from .core.ports.pipeline_executor import PipelineExecutor
from .core.ports.tenant_resolver import TenantResolver
from .adapters.cache.lru_cache import LRUCache
from .adapters.cache.redis_cache import RedisCache
from .adapters.graphql.schema import create_graphql_router
from .adapters.handlers.results_handlers import ResultsHandlers
from .adapters.render.formatter import ResponseFormatter
from .adapters.repositories.memory_executor import MemoryPipelineExecutor
from .adapters.repositories.mongo_executor import MongoPipelineExecutor
from .adapters.tenants.mongo_resolver import MongoTenantResolver
from .adapters.tenants.static_resolver import StaticTenantResolver

# Import configuration
from .core.config.config import Config, config, logger

# Import error handlers
from .core.util.errorhandling import register_error_handlers


# Dependency injection setup
def get_pipeline_executor(settings: Config = config) -> PipelineExecutor:
    """Get the store executor selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "memory":
        collections = (settings.SITES_COLLECTION, settings.RESULTS_COLLECTION)
        if settings.SEED_FILE:
            logger.info(f"Seeding in-memory store from {settings.SEED_FILE}")
            return MemoryPipelineExecutor.from_json_file(settings.SEED_FILE, settings.SEED_DATABASE, collections)
        logger.warning("In-memory store started without seed data")
        return MemoryPipelineExecutor()
    if settings.STORE_BACKEND == "mongo":
        logger.info(f"Using MongoDB at: {settings.MONGODB_URI}")
        return MongoPipelineExecutor(settings.MONGODB_URI, timeout_ms=settings.MONGODB_TIMEOUT_MS)
    raise ConfigurationError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def get_tenant_resolver(executor: PipelineExecutor, settings: Config = config) -> TenantResolver:
    """Static API keys when configured, otherwise the tenants collection."""
    if settings.STATIC_TENANTS:
        return StaticTenantResolver.from_string(settings.STATIC_TENANTS)
    if isinstance(executor, MongoPipelineExecutor):
        return MongoTenantResolver(executor.client, settings.CORE_DATABASE, settings.TENANTS_COLLECTION)
    raise ConfigurationError("STATIC_TENANTS is required when STORE_BACKEND is not mongo")


def get_cache_service(settings: Config = config) -> Optional[CacheService]:
    """Get the result cache selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "none":
        logger.info("Result cache is disabled")
        return None
    if settings.CACHE_BACKEND == "redis":
        return RedisCache(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD,
            db=settings.REDIS_DB,
            default_ttl=settings.CACHE_DEFAULT_TTL,
            logger=logger
        )
    if settings.CACHE_BACKEND == "memory":
        return LRUCache(
            max_entries=settings.CACHE_MAX_ENTRIES,
            max_bytes=settings.CACHE_MAX_BYTES,
            default_ttl=settings.CACHE_DEFAULT_TTL,
            logger=logger
        )
    raise ConfigurationError(f"Unknown CACHE_BACKEND: {settings.CACHE_BACKEND}")


def get_rollup_policy(settings: Config = config) -> RollupPolicy:
    try:
        return RollupPolicy(settings.ROLLUP_POLICY)
    except ValueError:
        raise ConfigurationError(f"Unknown ROLLUP_POLICY: {settings.ROLLUP_POLICY}")


def create_app(
    executor: Optional[PipelineExecutor] = None,
    tenant_resolver: Optional[TenantResolver] = None,
    cache_service: Optional[CacheService] = None,
    settings: Config = config
) -> FastAPI:
    """
    Build the FastAPI application and wire its dependencies.

    Args:
        executor: Store executor, selected from settings when omitted
        tenant_resolver: API key resolver, selected from settings when omitted
        cache_service: Result cache, selected from settings when omitted
        settings: Configuration to read

    Returns:
        Configured FastAPI application
    """
    executor = executor or get_pipeline_executor(settings)
    tenant_resolver = tenant_resolver or get_tenant_resolver(executor, settings)
    if cache_service is None:
        cache_service = get_cache_service(settings)

    formatter = ResponseFormatter()
    availability_service = AvailabilityServiceImpl(
        executor=executor,
        formatter=formatter,
        cache_service=cache_service,
        rollup_policy=get_rollup_policy(settings),
        sites_collection=settings.SITES_COLLECTION,
        results_collection=settings.RESULTS_COLLECTION,
        cache_ttl=settings.CACHE_DEFAULT_TTL,
        logger=logger
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting A/R results service...")

        if isinstance(cache_service, RedisCache):
            if await cache_service.connect():
                logger.info("Redis cache connected successfully")
            else:
                logger.warning("Failed to connect to Redis cache, lookups will miss until it is reachable")

        yield

        # Shutdown
        logger.info("Shutting down A/R results service...")
        if isinstance(cache_service, RedisCache):
            await cache_service.disconnect()
        if isinstance(executor, MongoPipelineExecutor):
            executor.close()

    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.executor = executor
    app.state.cache_service = cache_service
    app.state.availability_service = availability_service

    # Include REST API routes
    results_handlers = ResultsHandlers(
        availability_service,
        tenant_resolver,
        formatter,
        default_format=settings.DEFAULT_FORMAT
    )
    app.include_router(results_handlers.router)
    logger.info("REST API router configured successfully")

    # Setup and include GraphQL
    graphql_router = create_graphql_router(
        availability_service=availability_service,
        tenant_resolver=tenant_resolver,
        playground_enabled=settings.GRAPHQL_PLAYGROUND_ENABLED,
        introspection_enabled=settings.GRAPHQL_INTROSPECTION_ENABLED
    )
    app.include_router(graphql_router, prefix=settings.GRAPHQL_ENDPOINT, tags=["GraphQL"])
    logger.info("GraphQL router configured successfully")

    # Register error handlers
    register_error_handlers(app)

    @app.get("/")
    async def root():
        """Root endpoint with service information."""
        return {
            "service": settings.APP_TITLE,
            "version": settings.APP_VERSION,
            "description": settings.APP_DESCRIPTION,
            "endpoints": {
                "docs": settings.DOCS_URL,
                "redoc": settings.REDOC_URL,
                "health": "/api/v1/availability/health",
                "sites": "/api/v1/availability/sites",
                "ngis": "/api/v1/availability/ngis",
                "results": "/api/v2/results/{report}/{group_type}",
                "graphql": settings.GRAPHQL_ENDPOINT
            }
        }

    @app.get("/health")
    async def health_check():
        """Service health check."""
        store_healthy = await executor.health_check()
        return {
            "status": "healthy" if store_healthy else "degraded",
            "service": "ar-results",
            "store": "healthy" if store_healthy else "unhealthy",
            "cache": settings.CACHE_BACKEND,
            "timestamp": str(datetime.now().isoformat())
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Run the application
    uvicorn.run(
        "ar_analytics.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.RELOAD,
        log_level=config.LOG_LEVEL
    )
