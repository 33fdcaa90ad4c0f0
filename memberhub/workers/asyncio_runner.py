from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from memberhub.db.session import dispose_engine

T = TypeVar("T")


async def _run_with_fresh_db_pool(awaitable: Awaitable[T], *, job_name: str) -> T:
    # asyncpg connections are bound to the loop that opened them
    await dispose_engine()
    structlog.contextvars.bind_contextvars(job=job_name)
    try:
        return await awaitable
    finally:
        structlog.contextvars.unbind_contextvars("job")
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str) -> T:
    return asyncio.run(_run_with_fresh_db_pool(awaitable, job_name=job_name))
