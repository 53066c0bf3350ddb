"""
Scoring sessions: one per monitored camera/video/screen/call session.

Each session owns its stream processors, fusion engine and counters; nothing
is shared between sessions. A reset bumps the session's generation so that
any inference still in flight for the previous generation is discarded when
it completes.
"""

from __future__ import annotations

import threading
import uuid
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from sentinel.core.config import get_settings
from sentinel.core.logger import get_logger
from sentinel.schemas.risk import RiskState, ThresholdConfig
from sentinel.schemas.session import Modality, SessionMode, SessionStatsSnapshot
from sentinel.schemas.threat import ThreatAssessment
from sentinel.services.alerting import AlertDispatcher, AlertEvent, AlertSink
from sentinel.services.fusion_engine import ThreatFusionEngine
from sentinel.services.session_stats import SessionStats
from sentinel.services.stream_processor import (
    FaceLocator,
    PublishCallback,
    ScoreOutcome,
    Scorer,
    StreamProcessor,
)

log = get_logger(__name__)

# Stream whose scores feed the session counters and the fusion video channel
_PRIMARY_STREAM = {
    SessionMode.CAMERA: Modality.VIDEO,
    SessionMode.VIDEO: Modality.VIDEO,
    SessionMode.SCREEN_CAPTURE: Modality.SCREEN,
    SessionMode.CALL: Modality.AUDIO,
}


class ScoringSession:
    def __init__(
        self,
        session_id: str,
        mode: SessionMode = SessionMode.CAMERA,
        config: Optional[ThresholdConfig] = None,
        scorers: Optional[Dict[Modality, Scorer]] = None,
        face_locator: Optional[FaceLocator] = None,
        publish_callbacks: Optional[List[PublishCallback]] = None,
        alert_sinks: Optional[List[AlertSink]] = None,
    ) -> None:
        settings = get_settings()
        self.session_id = session_id
        self.mode = mode
        self.config = config or ThresholdConfig.from_settings(settings)
        self.stats = SessionStats()
        self.fusion = ThreatFusionEngine()
        self.last_assessment: Optional[ThreatAssessment] = None
        self._lock = threading.Lock()
        self._generation = 0

        scorers = scorers or {}
        self.streams: Dict[Modality, StreamProcessor] = {}
        for modality in Modality:
            self.streams[modality] = StreamProcessor(
                stream=modality.value,
                stats=self.stats,
                lock=self._lock,
                generation=lambda: self._generation,
                config=self.config,
                scorer=scorers.get(modality),
                # audio chunks carry no face
                face_locator=face_locator if modality is not Modality.AUDIO else None,
                alerts=AlertDispatcher(
                    sinks=alert_sinks,
                    sound_enabled=settings.ALERT_SOUND_ENABLED,
                    session_id=session_id,
                    stream=modality.value,
                ),
                publish_callbacks=publish_callbacks,
                records_stats=modality is _PRIMARY_STREAM[mode],
                min_interval=settings.SCREEN_CAPTURE_INTERVAL if modality is Modality.SCREEN else 0.0,
                session_id=session_id,
            )

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def primary_stream(self) -> Modality:
        return _PRIMARY_STREAM[self.mode]

    @property
    def video_channel(self) -> Modality:
        return Modality.SCREEN if self.mode is SessionMode.SCREEN_CAPTURE else Modality.VIDEO

    async def start(self) -> None:
        for processor in self.streams.values():
            if processor.scorer is not None:
                await processor.start()

    async def stop(self) -> None:
        for processor in self.streams.values():
            await processor.stop()

    def submit_frame(self, modality: Modality, image: np.ndarray, timestamp: Optional[float] = None) -> bool:
        processor = self.streams[modality]
        if processor.scorer is None:
            raise RuntimeError(f"Stream {modality.value!r} has no scorer attached")
        return processor.submit(image, timestamp)

    def submit_score(
        self,
        modality: Modality,
        raw_score: float,
        face_detected: bool = True,
    ) -> Optional[ScoreOutcome]:
        """Score a raw value produced outside the session's own workers.

        Returns None when a video or screen frame had no face; the frame is
        still counted. Audio chunks carry no face and are always scored.
        """
        processor = self.streams[modality]
        if processor.records_stats:
            with self._lock:
                self.stats.record_frame()
                if face_detected and modality is not Modality.AUDIO:
                    self.stats.record_face()
        if not face_detected and modality is not Modality.AUDIO:
            return None
        return processor.apply_score(raw_score, self._generation)

    def drain_alerts(self) -> List[AlertEvent]:
        events: List[AlertEvent] = []
        for processor in self.streams.values():
            events.extend(processor.alerts.drain())
        return events

    async def dispatch_alerts(self) -> List[AlertEvent]:
        events: List[AlertEvent] = []
        for processor in self.streams.values():
            events.extend(await processor.alerts.dispatch())
        return events

    def assess(self) -> ThreatAssessment:
        """Fuse the most recent smoothed score of the video channel and audio."""
        with self._lock:
            assessment = self.fusion.assess_threat(
                video_score=self.streams[self.video_channel].latest_smoothed,
                audio_score=self.streams[Modality.AUDIO].latest_smoothed,
            )
            self.last_assessment = assessment
            return assessment

    def trend(self) -> str:
        with self._lock:
            return self.fusion.get_trend()

    def reset(self, mode: Optional[SessionMode] = None) -> int:
        """Start a new session generation, optionally switching mode."""
        with self._lock:
            self._generation += 1
            if mode is not None:
                self.mode = mode
            for modality, processor in self.streams.items():
                processor.reset()
                processor.records_stats = modality is _PRIMARY_STREAM[self.mode]
            self.fusion.reset()
            self.stats.reset()
            self.last_assessment = None
            generation = self._generation
        log.info("Session %s reset: mode=%s generation=%d", self.session_id, self.mode.value, generation)
        return generation

    def update_config(self, **changes: Any) -> ThresholdConfig:
        self.config = self.config.update(**changes)
        for processor in self.streams.values():
            processor.apply_config(self.config)
        return self.config

    def current_state(self, modality: Optional[Modality] = None) -> RiskState:
        return self.streams[modality or self.primary_stream].state

    def snapshot(self) -> SessionStatsSnapshot:
        with self._lock:
            return self.stats.snapshot()

    def describe(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.session_id,
                "mode": self.mode.value,
                "generation": self._generation,
                "risk_state": self.streams[self.primary_stream].state.value,
                "streams": {
                    m.value: {
                        "risk_state": p.state.value,
                        "smoothed_score": p.latest_smoothed,
                        "running": p.running,
                    }
                    for m, p in self.streams.items()
                },
            }


ScorerFactory = Callable[[SessionMode], Dict[Modality, Scorer]]


class SessionManager:
    """Registry of live scoring sessions keyed by session id."""

    def __init__(
        self,
        config: Optional[ThresholdConfig] = None,
        scorer_factory: Optional[ScorerFactory] = None,
        face_locator: Optional[FaceLocator] = None,
        alert_sinks: Optional[List[AlertSink]] = None,
    ) -> None:
        self.config = config or ThresholdConfig.from_settings(get_settings())
        self.scorer_factory = scorer_factory
        self.face_locator = face_locator
        self.alert_sinks = alert_sinks or []
        self._sessions: Dict[str, ScoringSession] = {}

    async def create(
        self,
        mode: SessionMode = SessionMode.CAMERA,
        publish_callbacks: Optional[List[PublishCallback]] = None,
    ) -> ScoringSession:
        session_id = str(uuid.uuid4())
        session = ScoringSession(
            session_id=session_id,
            mode=mode,
            config=self.config,
            scorers=self.scorer_factory(mode) if self.scorer_factory else None,
            face_locator=self.face_locator,
            publish_callbacks=publish_callbacks,
            alert_sinks=self.alert_sinks,
        )
        await session.start()
        self._sessions[session_id] = session
        log.info("Session %s created (mode=%s)", session_id, mode.value)
        return session

    def get(self, session_id: str) -> ScoringSession:
        return self._sessions[session_id]

    def list(self) -> List[ScoringSession]:
        return list(self._sessions.values())

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id)
        await session.stop()
        log.info("Session %s closed", session_id)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def update_config(self, **changes: Any) -> ThresholdConfig:
        """Apply to future sessions and every live one; last write wins."""
        self.config = self.config.update(**changes)
        for session in list(self._sessions.values()):
            session.update_config(**changes)
        log.info(
            "Thresholds updated: low_max=%s high_min=%s window=%s hysteresis=%s",
            self.config.low_risk_max, self.config.high_risk_min,
            self.config.smoothing_window_size, self.config.hysteresis_enabled,
        )
        return self.config


_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager
