"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from webapi.backend_client import BackendClient, HttpBackendClient, InMemoryBackendClient
from webapi.cache import CacheClient, InMemoryCacheClient, RedisCacheClient
from webapi.config import Settings, get_settings
from webapi.database import DatabaseEngines, create_database_engines
from webapi.instrumentation import InstrumentedOperation
from webapi.telemetry import get_sum_counter, get_tracer

logger = logging.getLogger(__name__)

_backend_client: BackendClient | None = None
_cache_client: CacheClient | None = None
_database_engines: DatabaseEngines | None = None
_instrumented_operation: InstrumentedOperation | None = None


def get_app_settings() -> Settings:
    return get_settings()


def get_backend_client() -> BackendClient:
    global _backend_client
    if _backend_client:
        return _backend_client

    settings = get_settings()
    base_url = settings.backend_base_url()
    if base_url:
        _backend_client = HttpBackendClient(
            base_url=base_url, timeout=settings.backend_timeout_seconds
        )
    else:
        logger.warning("No backend service reference configured; using in-memory backend")
        _backend_client = InMemoryBackendClient()
    return _backend_client


def get_cache_client() -> CacheClient:
    global _cache_client
    if _cache_client:
        return _cache_client

    settings = get_settings()
    if settings.redis_url:
        _cache_client = RedisCacheClient(url=settings.redis_url)
    else:
        _cache_client = InMemoryCacheClient()
    return _cache_client


def get_database_engines() -> DatabaseEngines | None:
    """
    Return the control/target engine pair, or None when the databases are
    not configured.
    """
    global _database_engines
    if _database_engines:
        return _database_engines

    settings = get_settings()
    if not settings.database_url or not settings.admin_database_url:
        return None
    _database_engines = create_database_engines(
        settings.database_url, settings.admin_database_url
    )
    return _database_engines


def get_instrumented_operation() -> InstrumentedOperation:
    global _instrumented_operation
    if _instrumented_operation:
        return _instrumented_operation

    _instrumented_operation = InstrumentedOperation(get_tracer(), get_sum_counter())
    return _instrumented_operation
