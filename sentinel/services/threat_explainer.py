"""Human-readable explanations for fused threat assessments."""

from __future__ import annotations

from typing import List

from sentinel.core.logger import get_logger
from sentinel.schemas.threat import ThreatAssessment, ThreatExplanation

log = get_logger(__name__)


def _modality_indicators(
    label: str,
    score: float,
    high_finding: str,
    moderate_finding: str,
    high_text: str,
    moderate_text: str,
    passed_text: str,
    high_details: str,
    indicators: List[str],
    details: List[str],
) -> None:
    pct = int(score * 100)
    if score > 0.75:
        indicators.append(high_text)
        details.append(f"{label} Analysis: {pct}% {high_finding}")
        details.append(high_details)
    elif score > 0.5:
        indicators.append(moderate_text)
        details.append(f"{label} Analysis: {pct}% confidence - {moderate_finding}")
    else:
        indicators.append(passed_text)


def explain_threat(assessment: ThreatAssessment) -> ThreatExplanation:
    has_video = assessment.has_video
    has_audio = assessment.has_audio
    video = assessment.video_score
    audio = assessment.audio_score
    fused = assessment.fused_score

    indicators: List[str] = []
    details: List[str] = []
    recommendations: List[str] = []

    if has_video:
        _modality_indicators(
            "Visual", video,
            "manipulation likelihood detected",
            "some suspicious patterns",
            "High facial manipulation probability",
            "Moderate visual artifacts detected",
            "Visual authenticity checks passed",
            "Common indicators: unnatural eye movements, skin texture inconsistencies, lighting mismatches",
            indicators, details,
        )
    if has_audio:
        _modality_indicators(
            "Audio", audio,
            "AI-generated voice likelihood",
            "voice irregularities present",
            "High voice synthesis probability",
            "Suspicious audio patterns detected",
            "Audio authenticity checks passed",
            "Common indicators: unnatural prosody, frequency anomalies, timing inconsistencies",
            indicators, details,
        )

    if assessment.anomaly_detected and has_video and has_audio:
        indicators.append("CRITICAL: Audio-Visual Mismatch Detected")
        details.append("Cross-Modal Anomaly: video and audio scores disagree significantly")
        if audio > video + 0.3:
            details.append("Pattern: likely audio deepfake overlay on authentic video")
            recommendations.append("Focus on verifying audio source - possible voice cloning attack")
        elif video > audio + 0.3:
            details.append("Pattern: likely video manipulation with authentic audio")
            recommendations.append("Focus on visual verification - possible face swap or synthetic video")

    if fused > 0.7:
        recommendations.extend([
            "Do not act on this content without verification",
            "Cross-reference with trusted sources",
            "Contact the alleged source directly through known channels",
            "Report to appropriate authorities if impersonation is suspected",
        ])
    elif fused > 0.4:
        recommendations.extend([
            "Exercise caution - treat as potentially manipulated",
            "Verify through alternative channels before acting",
            "Look for corroborating evidence from trusted sources",
        ])
    else:
        recommendations.extend([
            "Low risk detected, but remain vigilant",
            "Always verify sensitive information through multiple sources",
        ])

    if has_video and has_audio:
        confidence_label = "High Confidence (Multi-modal analysis)"
    elif has_video or has_audio:
        confidence_label = "Medium Confidence (Single-modal analysis)"
    else:
        confidence_label = "Low Confidence (Insufficient data)"

    log.info(
        "Generated explanation: %d indicators, %d recommendations",
        len(indicators), len(recommendations),
    )
    return ThreatExplanation(
        summary=_summary(fused, assessment.anomaly_detected, has_video, has_audio),
        technical_details=details,
        indicators=indicators,
        recommendations=recommendations,
        confidence_label=confidence_label,
    )


def _summary(score: float, anomaly: bool, has_video: bool, has_audio: bool) -> str:
    if score > 0.7:
        level = "HIGH RISK"
    elif score > 0.4:
        level = "MODERATE RISK"
    else:
        level = "LOW RISK"

    if has_video and has_audio:
        modality = "both video and audio analysis"
    elif has_video:
        modality = "video analysis only"
    elif has_audio:
        modality = "audio analysis only"
    else:
        modality = "limited analysis"

    note = " with cross-modal inconsistencies detected" if anomaly else ""
    return f"{level} of manipulation detected through {modality}{note}."


def quick_tip(fused_score: float) -> str:
    if fused_score > 0.8:
        return "Very high threat - likely synthetic media. Verify through official channels."
    if fused_score > 0.6:
        return "High threat - significant manipulation indicators. Verify before sharing or acting."
    if fused_score > 0.4:
        return "Moderate threat - some suspicious patterns. Exercise caution and verify claims."
    return "Low threat detected. Continue with normal awareness and verify sensitive information."
