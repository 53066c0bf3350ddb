from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ThreatAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    fused_score: float
    anomaly_detected: bool
    confidence: float
    reasoning: str
    video_score: float  # effective score, 0.5 when the modality was absent
    audio_score: float
    has_video: bool = True
    has_audio: bool = True
    anomaly_pattern: Optional[str] = None


class ThreatExplanation(BaseModel):
    summary: str
    technical_details: List[str]
    indicators: List[str]
    recommendations: List[str]
    confidence_label: str


class AssessRequest(BaseModel):
    video_score: Optional[float] = None
    audio_score: Optional[float] = None
