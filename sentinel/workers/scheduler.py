from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from sentinel.core.config import get_settings
from sentinel.core.logger import get_logger

log = get_logger(__name__)


PeriodicCallable = Callable[[], Awaitable[object]]


@dataclass
class _Job:
    name: str
    interval_sec: float
    task: asyncio.Task
    runs: int = 0
    failures: int = 0


class PeriodicScheduler:
    """Named housekeeping jobs run on a fixed interval.

    A failing run is logged and counted; the job keeps its schedule.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, _Job] = {}
        self._running = False

    @property
    def jobs(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {"interval_sec": job.interval_sec, "runs": job.runs, "failures": job.failures}
            for name, job in self._jobs.items()
        }

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        for name in list(self._jobs):
            await self.cancel(name)

    async def cancel(self, name: str) -> None:
        job = self._jobs.pop(name, None)
        if job is None:
            return
        job.task.cancel()
        try:
            await job.task
        except asyncio.CancelledError:
            pass

    def schedule(self, name: str, func: PeriodicCallable, interval_sec: float, delay_sec: float = 0.0) -> None:
        if name in self._jobs:
            raise ValueError(f"job {name!r} already scheduled")

        async def _loop() -> None:
            await asyncio.sleep(delay_sec)
            while self._running:
                job = self._jobs[name]
                started = time.monotonic()
                try:
                    await func()
                    job.runs += 1
                except Exception:
                    job.failures += 1
                    log.exception("Periodic job %s failed", name)
                await asyncio.sleep(max(0.0, interval_sec - (time.monotonic() - started)))

        self._jobs[name] = _Job(name, interval_sec, asyncio.create_task(_loop()))
        log.info("Scheduled %s every %.0fs", name, interval_sec)


_scheduler: Optional[PeriodicScheduler] = None


def get_scheduler() -> PeriodicScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = PeriodicScheduler()
    return _scheduler


async def cleanup_exports(max_age_sec: Optional[float] = None) -> int:
    """Delete per-session export files older than `max_age_sec`.

    The report history file is kept; it is capped by ReportStore instead.
    Returns the number of files removed.
    """
    settings = get_settings()
    max_age = settings.REPORT_MAX_AGE_SEC if max_age_sec is None else max_age_sec
    base = Path(settings.SENTINEL_TMP) / "sessions"
    if not base.exists():
        return 0
    now = time.time()
    removed = 0
    for p in base.rglob("*.json"):
        try:
            if now - p.stat().st_mtime > max_age:
                p.unlink(missing_ok=True)
                removed += 1
        except OSError:
            log.warning("Could not remove %s", p)
    for d in sorted(base.iterdir(), reverse=True):
        if d.is_dir() and not any(d.iterdir()):
            d.rmdir()
    if removed:
        log.info("Cleaned %d export files from %s", removed, base)
    return removed
