"""
Configuration settings for the availability results service.
Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import List, Optional

from ...adapters.logger.standard_logger import StandardLogger
from ..ports.logger import Logger


# Configure logging using our custom logger
logger: Logger = StandardLogger("ar_analytics")


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    return int(value) if value else None


# Configuration from environment variables
class Config:
    """Application configuration loaded from environment variables."""

    # Store configuration; STORE_BACKEND is "mongo" or "memory"
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "mongo").lower()
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))
    CORE_DATABASE: str = os.getenv("CORE_DATABASE", "argo_core")
    TENANTS_COLLECTION: str = os.getenv("TENANTS_COLLECTION", "tenants")
    SITES_COLLECTION: str = os.getenv("SITES_COLLECTION", "sites")
    RESULTS_COLLECTION: str = os.getenv("RESULTS_COLLECTION", "endpoint_group_ar")

    # In-memory store seed (STORE_BACKEND=memory)
    SEED_FILE: str = os.getenv("SEED_FILE", "")
    SEED_DATABASE: str = os.getenv("SEED_DATABASE", "argo_egi")

    # Static API keys, "key=Tenant:database,..."; when empty tenants are read from MongoDB
    STATIC_TENANTS: str = os.getenv("STATIC_TENANTS", "")

    # Result cache; CACHE_BACKEND is "memory", "redis" or "none"
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "memory").lower()
    CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "1024"))
    CACHE_MAX_BYTES: Optional[int] = _optional_int("CACHE_MAX_BYTES")
    CACHE_DEFAULT_TTL: int = int(os.getenv("CACHE_DEFAULT_TTL", "3600"))

    # Redis configuration (CACHE_BACKEND=redis)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD: Optional[str] = os.getenv("REDIS_PASSWORD") or None
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

    # Results
    ROLLUP_POLICY: str = os.getenv("ROLLUP_POLICY", "flat").lower()
    DEFAULT_FORMAT: str = os.getenv("DEFAULT_FORMAT", "xml").lower()

    # CORS configuration - Allow all origins for maximum compatibility
    CORS_ORIGINS: List[str] = ["*"]

    # Application configuration
    APP_TITLE: str = "ARGO A/R Results Service"
    APP_DESCRIPTION: str = "Availability and reliability results for monitored sites, NGIs and groups"
    APP_VERSION: str = "1.0.0"
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"

    # GraphQL configuration
    GRAPHQL_PLAYGROUND_ENABLED: bool = os.getenv("GRAPHQL_PLAYGROUND_ENABLED", "true").lower() == "true"
    GRAPHQL_INTROSPECTION_ENABLED: bool = os.getenv("GRAPHQL_INTROSPECTION_ENABLED", "true").lower() == "true"
    GRAPHQL_ENDPOINT: str = "/api/v1/graphql"

    # Server configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    RELOAD: bool = os.getenv("RELOAD", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")


# Global configuration instance
config = Config()
