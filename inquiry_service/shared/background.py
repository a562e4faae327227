"""Periodic background work: store keep-alive and reputation sweep."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.engine import Engine

from inquiry_service.shared.contact.database import probe
from inquiry_service.shared.security.ip_reputation import SWEEP_INTERVAL_SECONDS, IPReputationTracker


async def keep_alive_once(engine: Engine, verbose: bool = False) -> bool:
    """Ping the store so the first real query after idle is not a cold start."""
    t0 = time.perf_counter()
    try:
        await run_in_threadpool(probe, engine)
    except Exception as e:
        logging.warning(f"[DB] keep-alive failed: {str(e)}")
        return False
    if verbose:
        logging.debug(f"[DB] keep-alive OK {(time.perf_counter() - t0) * 1000:.1f}ms")
    return True


async def sweep_once(tracker: IPReputationTracker) -> int:
    try:
        removed = tracker.sweep()
    except Exception as e:
        logging.error(f"[Security] reputation sweep failed: {str(e)}", exc_info=True)
        return 0
    if removed:
        logging.info(f"[Security] swept {removed} idle address entries")
    return removed


async def run_periodically(interval_seconds: float, job: Callable[[], Awaitable]) -> None:
    """Run `job` every `interval_seconds` until cancelled. Errors are logged, never raised."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await job()
        except Exception as e:
            logging.error(f"Background job failed: {str(e)}", exc_info=True)


def start_background_tasks(app) -> List[asyncio.Task]:
    settings = app.state.settings
    tasks = []

    if settings.DB_KEEP_ALIVE_MS > 0:
        verbose = not settings.is_production
        tasks.append(asyncio.create_task(run_periodically(
            settings.DB_KEEP_ALIVE_MS / 1000,
            lambda: keep_alive_once(app.state.engine, verbose),
        )))
        logging.info(f"[DB] keep-alive every {settings.DB_KEEP_ALIVE_MS}ms")

    tasks.append(asyncio.create_task(run_periodically(
        SWEEP_INTERVAL_SECONDS,
        lambda: sweep_once(app.state.tracker),
    )))
    return tasks


async def stop_background_tasks(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
