"""
HTTP routes for the web API.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from webapi.backend_client import BackendClient, BackendUnavailable
from webapi.cache import CacheClient
from webapi.config import Settings
from webapi.database import DatabaseEngines
from webapi.dependencies import (
    get_app_settings,
    get_backend_client,
    get_cache_client,
    get_database_engines,
    get_instrumented_operation,
)
from webapi.endpoints import resolve
from webapi.instrumentation import InstrumentedOperation
from webapi.provisioning import DatabaseProvisioner, ProvisioningError
from webapi.schemas import AnswerResponse, HealthResponse, IpResponse, SumResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ping", response_class=PlainTextResponse)
def ping() -> str:
    return "pong"


@router.get("/alive")
def alive() -> dict:
    return {"status": "ok"}


@router.get("/add", response_model=SumResponse)
def add(
    backend: BackendClient = Depends(get_backend_client),
    operation: InstrumentedOperation = Depends(get_instrumented_operation),
    settings: Settings = Depends(get_app_settings),
):
    """
    Add the two numbers served by the backend inside an "Adding" span.
    """
    logger.info("Adding numbers via backend service")
    try:
        data = backend.get_data()
    except BackendUnavailable as exc:
        logger.warning("%s", exc)
        raise HTTPException(status_code=502, detail="Backend service unavailable")

    def compute() -> int:
        if settings.add_delay_seconds > 0:
            time.sleep(settings.add_delay_seconds)
        return data.total() if data is not None else 0

    return SumResponse(sum=operation.run("Adding", compute))


@router.get("/ip", response_model=IpResponse)
def ip(settings: Settings = Depends(get_app_settings)):
    endpoint = resolve(settings.service_reference("backend", "https"))
    return IpResponse(
        service_reference=endpoint.host,
        port=endpoint.port,
        ip_address=endpoint.address,
    )


@router.get("/answer-from-db", response_model=AnswerResponse)
def answer_from_db(engines: DatabaseEngines | None = Depends(get_database_engines)):
    """
    Make sure the target database exists, then query it.
    """
    if engines is None:
        raise HTTPException(status_code=503, detail="Database not configured")

    provisioner = DatabaseProvisioner(engines.control, engines.target)
    try:
        outcome = provisioner.ensure_database(engines.database_name)
    except ProvisioningError:
        logger.exception("Provisioning database %s failed", engines.database_name)
        raise HTTPException(status_code=500, detail="Database provisioning failed")

    try:
        with engines.target.connect() as conn:
            answer = conn.execute(text("SELECT 42")).scalar()
    except SQLAlchemyError:
        logger.exception("Query against %s failed", engines.database_name)
        raise HTTPException(status_code=500, detail="Database query failed")

    return AnswerResponse(answer=answer, provisioning=outcome.value)


@router.get("/health", response_model=HealthResponse)
def health(
    engines: DatabaseEngines | None = Depends(get_database_engines),
    cache: CacheClient = Depends(get_cache_client),
):
    checks: dict[str, str] = {}
    if engines is None:
        checks["database"] = "not_configured"
    else:
        try:
            with engines.control.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except SQLAlchemyError as exc:
            logger.warning("Database health check failed: %s", exc)
            checks["database"] = "unavailable"

    checks["cache"] = "ok" if cache.ping() else "unavailable"
    healthy = all(value in ("ok", "not_configured") for value in checks.values())
    if not healthy:
        raise HTTPException(
            status_code=503,
            detail=HealthResponse(status="unhealthy", checks=checks).model_dump(),
        )
    return HealthResponse(status="healthy", checks=checks)
