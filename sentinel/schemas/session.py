from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from sentinel.schemas.risk import RiskState


class Modality(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    SCREEN = "screen"


class SessionMode(str, Enum):
    CAMERA = "camera"
    VIDEO = "video"
    SCREEN_CAPTURE = "screen_capture"
    CALL = "call"


class SessionStatsSnapshot(BaseModel):
    """Read-only view of a session's counters at the time it was taken."""

    session_start_time: int  # epoch ms
    frames_processed: int = 0
    faces_detected: int = 0
    inference_calls: int = 0
    low_risk_count: int = 0
    suspicious_risk_count: int = 0
    high_risk_count: int = 0
    score_sum: float = 0.0
    peak_score: float = 0.0
    average_score: float = 0.0
    session_duration_ms: int = 0


class DetectionReport(BaseModel):
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    mode: str
    confidence: float
    risk_level: str
    faces_detected: int
    session_duration_ms: int
    average_score: float
    peak_score: float
    frames_processed: int
    inference_calls: int

    @property
    def formatted_duration(self) -> str:
        seconds = self.session_duration_ms // 1000
        minutes, remaining = divmod(seconds, 60)
        if minutes > 0:
            return f"{minutes}m {remaining}s"
        return f"{remaining}s"


class ScoreInput(BaseModel):
    """A raw score from the inference collaborator for one frame or chunk."""

    modality: Modality = Modality.VIDEO
    raw_score: float
    face_detected: bool = True
    timestamp: Optional[float] = None


class ScoreResult(BaseModel):
    session_id: str
    modality: Modality
    raw_score: Optional[float] = None
    smoothed_score: Optional[float] = None
    risk_state: RiskState
    previous_state: RiskState
    transitioned: bool = False
    generation: int


class SessionCreate(BaseModel):
    mode: SessionMode = SessionMode.CAMERA


class SessionReset(BaseModel):
    mode: Optional[SessionMode] = None


class ConfigUpdate(BaseModel):
    smoothing_window_size: Optional[int] = Field(default=None, ge=1)
    low_risk_max: Optional[float] = None
    high_risk_min: Optional[float] = None
    hysteresis_enabled: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
