from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from sentinel.core.logger import get_logger
from sentinel.services.report_exporter import (
    ReportStore,
    build_detection_report,
    build_session_export,
    write_session_export,
)
from sentinel.services.session_manager import ScoringSession

log = get_logger(__name__)


JobCallable = Callable[[], Awaitable[Any]]

JOB_HISTORY = 256


@dataclass
class JobRecord:
    job_id: str
    func: JobCallable = field(repr=False)
    state: str = "queued"
    error: Optional[str] = None
    submitted_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None


class BackgroundTaskRunner:
    """Single-worker queue for export jobs.

    Jobs run one at a time in submission order. A job's state moves
    queued -> running -> done | failed; the last JOB_HISTORY records are kept.
    """

    def __init__(self, history: int = JOB_HISTORY) -> None:
        self._queue: asyncio.Queue[JobRecord] = asyncio.Queue()
        self._records: "OrderedDict[str, JobRecord]" = OrderedDict()
        self._history = history
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._work())
        log.info("Export runner started")

    async def _work(self) -> None:
        while True:
            record = await self._queue.get()
            record.state = "running"
            try:
                await record.func()
                record.state = "done"
            except Exception as exc:
                record.state = "failed"
                record.error = str(exc)
                log.exception("Background job %s failed", record.job_id)
            finally:
                record.finished_at = time.time()
                self._queue.task_done()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("Export runner stopped (%d jobs pending)", self._queue.qsize())

    async def submit(self, job_id: str, func: JobCallable) -> None:
        record = JobRecord(job_id=job_id, func=func)
        self._records[job_id] = record
        while len(self._records) > self._history:
            self._records.popitem(last=False)
        await self._queue.put(record)

    async def join(self) -> None:
        await self._queue.join()

    def record(self, job_id: str) -> Optional[JobRecord]:
        return self._records.get(job_id)

    def status(self, job_id: str) -> Optional[str]:
        record = self._records.get(job_id)
        return record.state if record else None


_runner: Optional[BackgroundTaskRunner] = None


def get_task_runner() -> BackgroundTaskRunner:
    global _runner
    if _runner is None:
        _runner = BackgroundTaskRunner()
    return _runner


async def enqueue_export_session(session: ScoringSession, store: Optional[ReportStore] = None) -> str:
    """Enqueue an export of the session's current state.

    Writes <SENTINEL_TMP>/sessions/<session_id>/session_export.json and appends
    a DetectionReport to the report history. Returns the job_id.
    """
    # Captured at enqueue time; a later reset does not alter the export
    report = build_detection_report(session)
    payload = build_session_export(session)
    job_id = f"export-{session.session_id}-{report.timestamp}"
    store = store or ReportStore()

    async def _job() -> None:
        out: Path = write_session_export(session.session_id, payload)
        store.save(report)
        log.info("Export completed for session %s -> %s", session.session_id, out)

    await get_task_runner().submit(job_id, _job)
    return job_id
