from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from memberhub.core.config import get_settings
from memberhub.db.session import SessionLocal
from memberhub.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

PROBE_TIMEOUT_SECONDS = 3.0
CELERY_PING_TIMEOUT_SECONDS = 1.0

Check = Callable[[], Awaitable[dict[str, Any]]]


def _passed(**extra: Any) -> dict[str, Any]:
    return {"status": "ok", **extra}


def _failed(error: str) -> dict[str, str]:
    # error is a fixed code; exception text can carry connection strings
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("health_database_check_failed", exc_info=True)
        return _failed("database_unavailable")
    return _passed()


async def _check_redis() -> dict[str, Any]:
    try:
        client = Redis.from_url(get_settings().redis_url)
    except ValueError:
        return _failed("redis_misconfigured")
    try:
        if await client.ping() is not True:
            return _failed("redis_unexpected_ping_response")
    except Exception:
        logger.warning("health_redis_check_failed", exc_info=True)
        return _failed("redis_unavailable")
    finally:
        await client.aclose()
    return _passed()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=CELERY_PING_TIMEOUT_SECONDS)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception:
        logger.warning("health_celery_check_failed", exc_info=True)
        return _failed("celery_unavailable")
    if not replies:
        return _failed("celery_no_workers")
    return _passed(workers=len(replies))


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _bounded(name: str, check: Check) -> dict[str, Any]:
    try:
        return await asyncio.wait_for(check(), timeout=PROBE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("health_check_timed_out", check=name, timeout_seconds=PROBE_TIMEOUT_SECONDS)
        return _failed(f"{name}_timeout")


async def _probe(
    checks: dict[str, Check],
    *,
    ok_status: str,
    failed_status: str,
) -> JSONResponse:
    results = await asyncio.gather(*(_bounded(name, check) for name, check in checks.items()))
    report = dict(zip(checks, results))
    passed = all(result.get("status") == "ok" for result in results)
    return JSONResponse(
        status_code=status.HTTP_200_OK if passed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_status if passed else failed_status, "checks": report},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    return await _probe(
        {"database": _check_database, "redis": _check_redis, "celery": _check_celery_worker},
        ok_status="ok",
        failed_status="degraded",
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    # serving members does not depend on the sweep worker
    return await _probe(
        {"database": _check_database, "redis": _check_redis},
        ok_status="ready",
        failed_status="not_ready",
    )
