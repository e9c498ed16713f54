"""
Tick scheduling for the subscription worker

One tick at a time: the scheduler owns an idle/running state and refuses a
new tick while one is running. Across processes the tick lock (redis) plays
the same role.
"""

import asyncio
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import redis
from redis.exceptions import LockError
import structlog

from mandi_saas.core.config import Settings, get_settings
from mandi_saas.schemas.lifecycle import TickSummary

logger = structlog.get_logger(__name__)

JOB_ID = "subscription_lifecycle_tick"


class TickState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class LocalTickLock:
    """In-process lock, enough for a single worker process"""

    def __init__(self):
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()


class RedisTickLock:
    """Cross-process lock so only one worker instance runs a tick"""

    def __init__(self, client: redis.Redis, name: str, timeout_seconds: int):
        self.name = name
        self.timeout_seconds = timeout_seconds
        self._lock = client.lock(name, timeout=timeout_seconds, thread_local=False)

    @classmethod
    def from_url(cls, url: str, name: str, timeout_seconds: int) -> "RedisTickLock":
        return cls(redis.Redis.from_url(url), name, timeout_seconds)

    def acquire(self) -> bool:
        return bool(self._lock.acquire(blocking=False))

    def release(self) -> None:
        try:
            self._lock.release()
        except LockError as e:
            # Lock expired while the tick was still running
            logger.warning(f"Tick lock {self.name} was no longer held on release: {e}")


def build_tick_lock(settings: Settings):
    """Tick lock for the configured backend

    The redis lock expires only after the tick deadline plus a margin: the
    deadline is checked between records, so the last record (or the report)
    may still be running when it passes. Worker statements are bounded by
    WORKER_STATEMENT_TIMEOUT_SECONDS, which keeps that overrun short.
    """
    if settings.WORKER_LOCK_BACKEND == "redis":
        return RedisTickLock.from_url(
            settings.REDIS_URL,
            settings.WORKER_LOCK_NAME,
            settings.WORKER_TICK_TIMEOUT_SECONDS + settings.WORKER_LOCK_MARGIN_SECONDS,
        )
    if settings.WORKER_LOCK_BACKEND != "local":
        raise ValueError(f"Unknown WORKER_LOCK_BACKEND: {settings.WORKER_LOCK_BACKEND}")
    return LocalTickLock()


class LifecycleScheduler:
    """Runs the lifecycle tick now and then on a fixed interval"""

    def __init__(
        self,
        tick: Callable[..., TickSummary],
        lock=None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.tick = tick
        self.lock = lock or LocalTickLock()
        self.interval_hours = self.settings.WORKER_INTERVAL_HOURS
        self.tick_timeout_seconds = self.settings.WORKER_TICK_TIMEOUT_SECONDS
        self.state = TickState.IDLE
        self.last_summary: Optional[TickSummary] = None
        self.scheduler = AsyncIOScheduler()
        self._state_lock = threading.Lock()

    def trigger(self) -> Optional[TickSummary]:
        """Run one tick unless another one is still running"""
        with self._state_lock:
            if self.state == TickState.RUNNING:
                logger.warning("Previous subscription tick still running, skipping this run")
                return None
            self.state = TickState.RUNNING

        try:
            if not self.lock.acquire():
                logger.warning("Subscription tick lock held by another worker, skipping this run")
                return None
            try:
                deadline = time.monotonic() + self.tick_timeout_seconds
                self.last_summary = self.tick(deadline=deadline)
                return self.last_summary
            finally:
                self.lock.release()
        except Exception:
            logger.exception("Subscription worker tick failed")
            return None
        finally:
            with self._state_lock:
                self.state = TickState.IDLE

    async def _run_job(self) -> None:
        await asyncio.to_thread(self.trigger)

    def start(self) -> None:
        """Schedule the tick: once immediately, then every interval"""
        logger.info(f"Starting subscription worker, tick every {self.interval_hours}h")
        self.scheduler.add_job(
            self._run_job,
            IntervalTrigger(hours=self.interval_hours),
            id=JOB_ID,
            name="Subscription lifecycle tick",
            next_run_time=datetime.now(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()

    def shutdown(self) -> None:
        logger.info("Stopping subscription worker")
        self.scheduler.shutdown(wait=False)
