from sentinel.services.fusion_engine import ThreatFusionEngine
from sentinel.services.threat_explainer import explain_threat, quick_tip


def test_multi_modal_video_manipulation():
    assessment = ThreatFusionEngine().assess_threat(video_score=0.9, audio_score=0.1)
    out = explain_threat(assessment)
    assert out.confidence_label == "High Confidence (Multi-modal analysis)"
    assert "High facial manipulation probability" in out.indicators
    assert "Audio authenticity checks passed" in out.indicators
    assert "CRITICAL: Audio-Visual Mismatch Detected" in out.indicators
    assert any("video manipulation with authentic audio" in d for d in out.technical_details)
    assert out.recommendations[0].startswith("Focus on visual verification")
    # fused 0.58 -> moderate
    assert out.summary == (
        "MODERATE RISK of manipulation detected through both video and audio analysis"
        " with cross-modal inconsistencies detected."
    )


def test_audio_only_low_risk():
    assessment = ThreatFusionEngine().assess_threat(audio_score=0.2)
    out = explain_threat(assessment)
    assert out.indicators == ["Audio authenticity checks passed"]
    assert out.confidence_label == "Medium Confidence (Single-modal analysis)"
    assert out.summary == "LOW RISK of manipulation detected through audio analysis only."
    assert out.recommendations[0] == "Low risk detected, but remain vigilant"


def test_no_data():
    out = explain_threat(ThreatFusionEngine().assess_threat())
    assert out.indicators == []
    assert out.confidence_label == "Low Confidence (Insufficient data)"
    assert "limited analysis" in out.summary


def test_quick_tip_cut_points():
    assert quick_tip(0.85).startswith("Very high threat")
    assert quick_tip(0.7).startswith("High threat")
    assert quick_tip(0.5).startswith("Moderate threat")
    assert quick_tip(0.4).startswith("Low threat")


def test_audio_details_use_voice_wording():
    high = explain_threat(ThreatFusionEngine().assess_threat(audio_score=0.9))
    assert "Audio Analysis: 90% AI-generated voice likelihood" in high.technical_details
    assert high.indicators == ["High voice synthesis probability"]

    moderate = explain_threat(ThreatFusionEngine().assess_threat(audio_score=0.6))
    assert moderate.technical_details == ["Audio Analysis: 60% confidence - voice irregularities present"]


def test_visual_details_keep_manipulation_wording():
    out = explain_threat(ThreatFusionEngine().assess_threat(video_score=0.6))
    assert out.technical_details == ["Visual Analysis: 60% confidence - some suspicious patterns"]
