"""
Multi-modal threat fusion.

Combines the latest smoothed video and audio scores into one assessment,
flags cross-modal disagreement, and keeps a short history of each channel
for trend reporting.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from sentinel.core.logger import get_logger
from sentinel.schemas.threat import ThreatAssessment

log = get_logger(__name__)

VIDEO_WEIGHT = 0.6
AUDIO_WEIGHT = 0.4
ANOMALY_THRESHOLD = 0.4
HISTORY_SIZE = 10
TREND_DELTA = 0.1
ABSENT_SCORE = 0.5
SINGLE_MODALITY_CONFIDENCE = 0.7

TREND_INSUFFICIENT = "insufficient_data"
TREND_RISING = "rising"
TREND_FALLING = "falling"
TREND_STABLE = "stable"


def risk_tier(fused_score: float) -> str:
    if fused_score > 0.7:
        return "high"
    if fused_score > 0.4:
        return "moderate"
    return "low"


def anomaly_pattern(video_score: float, audio_score: float) -> str:
    if video_score < 0.3 and audio_score > 0.7:
        return "Audio-only manipulation suspected"
    if video_score > 0.7 and audio_score < 0.3:
        return "Video-only manipulation suspected"
    return "Cross-modal inconsistency detected"


class ThreatFusionEngine:
    def __init__(self) -> None:
        self._video_history: Deque[float] = deque(maxlen=HISTORY_SIZE)
        self._audio_history: Deque[float] = deque(maxlen=HISTORY_SIZE)
        self._fused_history: Deque[float] = deque(maxlen=HISTORY_SIZE)

    def assess_threat(
        self,
        video_score: Optional[float] = None,
        audio_score: Optional[float] = None,
    ) -> ThreatAssessment:
        """Fuse the available modality scores; None marks a modality as absent."""
        has_video = video_score is not None
        has_audio = audio_score is not None
        video = video_score if has_video else ABSENT_SCORE
        audio = audio_score if has_audio else ABSENT_SCORE

        pattern: Optional[str] = None
        if has_video and has_audio:
            difference = abs(video - audio)
            fused = video * VIDEO_WEIGHT + audio * AUDIO_WEIGHT
            anomaly = difference > ANOMALY_THRESHOLD
            confidence = 0.5 + 0.5 * (1.0 - difference)
            if anomaly:
                pattern = anomaly_pattern(video, audio)
                log.warning("ANOMALY: %s | diff=%.2f", pattern, difference)
        elif has_video or has_audio:
            fused = video if has_video else audio
            anomaly = False
            confidence = SINGLE_MODALITY_CONFIDENCE
        else:
            fused = ABSENT_SCORE
            anomaly = False
            confidence = 0.5

        self._video_history.append(video)
        self._audio_history.append(audio)
        self._fused_history.append(fused)

        log.info(
            "Video: %.2f | Audio: %.2f | Fused: %.2f | Anomaly: %s",
            video, audio, fused, anomaly,
        )
        return ThreatAssessment(
            fused_score=fused,
            anomaly_detected=anomaly,
            confidence=confidence,
            reasoning=self._reasoning(fused, video, audio, anomaly, has_video, has_audio),
            video_score=video,
            audio_score=audio,
            has_video=has_video,
            has_audio=has_audio,
            anomaly_pattern=pattern,
        )

    def get_trend(self) -> str:
        if len(self._fused_history) < 3:
            return TREND_INSUFFICIENT
        recent = list(self._fused_history)[-3:]
        delta = recent[-1] - recent[0]
        if delta > TREND_DELTA:
            return TREND_RISING
        if delta < -TREND_DELTA:
            return TREND_FALLING
        return TREND_STABLE

    @property
    def history_size(self) -> int:
        return len(self._fused_history)

    def reset(self) -> None:
        self._video_history.clear()
        self._audio_history.clear()
        self._fused_history.clear()
        log.info("Fusion history reset")

    @staticmethod
    def _reasoning(
        fused: float,
        video: float,
        audio: float,
        anomaly: bool,
        has_video: bool,
        has_audio: bool,
    ) -> str:
        parts = [
            {
                "high": "High manipulation probability",
                "moderate": "Moderate manipulation indicators",
                "low": "Low manipulation risk",
            }[risk_tier(fused)]
        ]
        if has_video and has_audio:
            parts.append(f"(Video: {int(video * 100)}%, Audio: {int(audio * 100)}%)")
        elif has_video:
            parts.append("(Video-only analysis)")
        elif has_audio:
            parts.append("(Audio-only analysis)")
        if anomaly:
            parts.append("Cross-modal anomaly detected - verify manually")
        return " ".join(parts)
