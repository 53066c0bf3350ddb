from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import numpy as np

from sentinel.core.config import get_settings
from sentinel.core.logger import get_stream_logger
from sentinel.schemas.risk import RiskState, ThresholdConfig
from sentinel.services.alerting import AlertDispatcher, AlertEvent
from sentinel.services.risk_classifier import RiskClassifier
from sentinel.services.session_stats import SessionStats
from sentinel.services.smoother import ScoreSmoother

BoundingBox = Tuple[int, int, int, int]  # left, top, width, height
FaceLocator = Callable[[np.ndarray], Awaitable[Optional[BoundingBox]]]
Scorer = Callable[[np.ndarray, Optional[BoundingBox]], Awaitable[float]]
PublishCallback = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass
class FrameItem:
    image: np.ndarray
    timestamp: float
    generation: int


@dataclass
class ScoreOutcome:
    raw_score: float
    smoothed_score: float
    risk_state: RiskState
    previous_state: RiskState
    generation: int

    @property
    def transitioned(self) -> bool:
        return self.risk_state != self.previous_state


class StreamProcessor:
    """Scores one modality stream in arrival order on a single worker task.

    The smoothing window and risk state belong to this stream alone. Session
    counters are shared with sibling streams, so every mutation happens under
    the session lock. Results computed for an older generation are dropped.
    """

    def __init__(
        self,
        stream: str,
        stats: SessionStats,
        lock: threading.Lock,
        generation: Callable[[], int],
        config: Optional[ThresholdConfig] = None,
        scorer: Optional[Scorer] = None,
        face_locator: Optional[FaceLocator] = None,
        alerts: Optional[AlertDispatcher] = None,
        publish_callbacks: Optional[List[PublishCallback]] = None,
        records_stats: bool = True,
        min_interval: float = 0.0,
        session_id: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.stream = stream
        self.session_id = session_id
        self.stats = stats
        self.records_stats = records_stats
        self.scorer = scorer
        self.face_locator = face_locator
        self.publish_callbacks = publish_callbacks or []
        self.min_interval = min_interval
        self.neutral_score = settings.NEUTRAL_SCORE
        self.log = get_stream_logger(__name__, session_id, stream)

        self._lock = lock
        self._generation = generation
        config = config or ThresholdConfig.from_settings(settings)
        self.smoother = ScoreSmoother(config.smoothing_window_size)
        self.classifier = RiskClassifier(config, name=stream)
        self.alerts = alerts or AlertDispatcher(
            sound_enabled=settings.ALERT_SOUND_ENABLED, session_id=session_id, stream=stream
        )
        self.classifier.add_listener(self.alerts.on_transition)

        self._queue: asyncio.Queue[FrameItem] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._last_accepted_ts: Optional[float] = None
        self.latest: Optional[ScoreOutcome] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> RiskState:
        return self.classifier.state

    @property
    def latest_smoothed(self) -> Optional[float]:
        return self.latest.smoothed_score if self.latest else None

    def apply_config(self, config: ThresholdConfig) -> None:
        with self._lock:
            self.classifier.config = config
            self.smoother.window_size = config.smoothing_window_size

    def apply_score(self, raw_score: float, generation: int) -> Optional[ScoreOutcome]:
        """Smooth, classify and record one raw score; None if `generation` is stale."""
        with self._lock:
            if generation != self._generation():
                self.log.debug("Discarding stale score %.4f (generation %d)", raw_score, generation)
                return None
            previous = self.classifier.state
            smoothed = self.smoother.ingest(raw_score)
            state = self.classifier.evaluate(smoothed)
            if self.records_stats:
                self.stats.record_inference(smoothed, state)
            self.latest = ScoreOutcome(
                raw_score=raw_score,
                smoothed_score=smoothed,
                risk_state=state,
                previous_state=previous,
                generation=generation,
            )
            return self.latest

    def submit(self, image: np.ndarray, timestamp: Optional[float] = None) -> bool:
        """Queue a frame for scoring; False when not running or throttled."""
        if not self._running:
            return False
        ts = time.time() if timestamp is None else timestamp
        if self.min_interval and self._last_accepted_ts is not None:
            if ts - self._last_accepted_ts < self.min_interval:
                return False
        self._last_accepted_ts = ts
        self._queue.put_nowait(FrameItem(image=image, timestamp=ts, generation=self._generation()))
        return True

    def reset(self) -> None:
        """Clear window, state and queued frames. Caller holds the session lock."""
        self.smoother.reset()
        self.classifier.reset()
        self.alerts.drain()
        self.latest = None
        self._last_accepted_ts = None
        self._drain_queue()

    def _drain_queue(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            self._queue.task_done()
            dropped += 1

    async def start(self) -> None:
        if self._running:
            return
        if self.scorer is None:
            raise RuntimeError(f"No scorer configured for stream {self.stream!r}")
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"stream-{self.stream}-loop")

    async def stop(self) -> None:
        self._running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        dropped = self._drain_queue()
        if dropped:
            self.log.info("Stopped with %d queued frames dropped", dropped)

    async def join(self) -> None:
        """Wait until every queued frame has been processed."""
        await self._queue.join()

    async def _loop(self) -> None:
        while self._running:
            item = await self._queue.get()
            try:
                await self._process(item)
            except Exception as exc:  # pragma: no cover
                self.log.exception("Frame processing failed: %s", exc)
            finally:
                self._queue.task_done()

    def _is_stale(self, item: FrameItem) -> bool:
        return item.generation != self._generation()

    async def _process(self, item: FrameItem) -> None:
        if self._is_stale(item):
            self.log.debug("Dropping frame from generation %d", item.generation)
            return
        if self.records_stats:
            with self._lock:
                if self._is_stale(item):
                    return
                self.stats.record_frame()

        face: Optional[BoundingBox] = None
        if self.face_locator is not None:
            try:
                face = await self.face_locator(item.image)
            except Exception as exc:
                self.log.exception("Face localization failed: %s", exc)
                face = None
            if self._is_stale(item):
                return
            if face is None:
                await self._publish(self._payload("no_face", item))
                return
            if self.records_stats:
                with self._lock:
                    if self._is_stale(item):
                        return
                    self.stats.record_face()

        try:
            raw = float(await self.scorer(item.image, face))
        except Exception as exc:
            self.log.exception("Inference failed, using neutral score: %s", exc)
            raw = self.neutral_score

        outcome = self.apply_score(raw, item.generation)
        if outcome is None:
            return
        alerts = await self.alerts.dispatch()
        await self._publish(self._payload("score", item, outcome, alerts))

    def _payload(
        self,
        kind: str,
        item: FrameItem,
        outcome: Optional[ScoreOutcome] = None,
        alerts: Optional[List[AlertEvent]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": kind,
            "session_id": self.session_id,
            "stream": self.stream,
            "generation": item.generation,
            "timestamp": item.timestamp,
        }
        if outcome is not None:
            payload.update(
                {
                    "raw_score": outcome.raw_score,
                    "smoothed_score": outcome.smoothed_score,
                    "risk_state": outcome.risk_state.value,
                    "previous_state": outcome.previous_state.value,
                    "transitioned": outcome.transitioned,
                    "alerts": [a.level for a in alerts or []],
                }
            )
        return payload

    async def _publish(self, payload: Dict[str, Any]) -> None:
        if not self.publish_callbacks:
            return
        self.log.info(
            "Publishing %s payload: state=%s smoothed=%s",
            payload.get("type"), payload.get("risk_state"), payload.get("smoothed_score"),
        )
        for cb in self.publish_callbacks:
            try:
                await cb(payload)
            except Exception as exc:  # pragma: no cover
                self.log.exception("Publish callback failed: %s", exc)
