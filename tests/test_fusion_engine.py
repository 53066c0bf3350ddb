import pytest

from sentinel.services.fusion_engine import ThreatFusionEngine, risk_tier


def test_both_modalities_weighted_with_anomaly():
    out = ThreatFusionEngine().assess_threat(video_score=0.8, audio_score=0.2)
    assert out.fused_score == pytest.approx(0.56)
    assert out.anomaly_detected is True
    assert out.confidence == pytest.approx(0.7)
    assert out.anomaly_pattern == "Video-only manipulation suspected"
    assert out.reasoning.startswith("Moderate manipulation indicators")
    assert "(Video: 80%, Audio: 20%)" in out.reasoning
    assert "Cross-modal anomaly detected" in out.reasoning


def test_agreeing_modalities_have_full_confidence():
    out = ThreatFusionEngine().assess_threat(video_score=0.3, audio_score=0.3)
    assert out.fused_score == pytest.approx(0.3)
    assert out.anomaly_detected is False
    assert out.confidence == pytest.approx(1.0)
    assert out.anomaly_pattern is None
    assert out.reasoning == "Low manipulation risk (Video: 30%, Audio: 30%)"


def test_moderate_disagreement_is_not_an_anomaly():
    out = ThreatFusionEngine().assess_threat(video_score=0.5, audio_score=0.25)
    assert out.anomaly_detected is False


def test_audio_overlay_pattern():
    out = ThreatFusionEngine().assess_threat(video_score=0.1, audio_score=0.9)
    assert out.anomaly_pattern == "Audio-only manipulation suspected"


def test_video_only():
    out = ThreatFusionEngine().assess_threat(video_score=0.9, audio_score=None)
    assert out.fused_score == pytest.approx(0.9)
    assert out.anomaly_detected is False
    assert out.confidence == pytest.approx(0.7)
    assert out.audio_score == pytest.approx(0.5)
    assert out.has_audio is False
    assert out.reasoning == "High manipulation probability (Video-only analysis)"


def test_audio_only():
    out = ThreatFusionEngine().assess_threat(audio_score=0.2)
    assert out.fused_score == pytest.approx(0.2)
    assert out.confidence == pytest.approx(0.7)
    assert out.reasoning == "Low manipulation risk (Audio-only analysis)"


def test_no_modalities_is_uninformative():
    out = ThreatFusionEngine().assess_threat()
    assert out.fused_score == pytest.approx(0.5)
    assert out.confidence == pytest.approx(0.5)
    assert out.anomaly_detected is False
    assert out.reasoning == "Moderate manipulation indicators"


@pytest.mark.parametrize(
    "score,tier",
    [(0.71, "high"), (0.7, "moderate"), (0.41, "moderate"), (0.4, "low"), (0.0, "low")],
)
def test_risk_tier_cut_points(score, tier):
    assert risk_tier(score) == tier


def test_trend_needs_three_entries():
    engine = ThreatFusionEngine()
    engine.assess_threat(video_score=0.1)
    engine.assess_threat(video_score=0.9)
    assert engine.get_trend() == "insufficient_data"


def test_trend_rising_stable_falling():
    engine = ThreatFusionEngine()
    for s in (0.1, 0.2, 0.5):
        engine.assess_threat(video_score=s)
    assert engine.get_trend() == "rising"

    engine.reset()
    for s in (0.5, 0.5, 0.5):
        engine.assess_threat(video_score=s)
    assert engine.get_trend() == "stable"

    for s in (0.8, 0.6, 0.3):
        engine.assess_threat(video_score=s)
    assert engine.get_trend() == "falling"


def test_trend_uses_most_recent_entries_only():
    engine = ThreatFusionEngine()
    for s in (0.9, 0.1, 0.4, 0.45, 0.42):
        engine.assess_threat(video_score=s)
    assert engine.get_trend() == "stable"


def test_history_is_bounded_and_reset_clears_it():
    engine = ThreatFusionEngine()
    for _ in range(25):
        engine.assess_threat(video_score=0.4, audio_score=0.6)
    assert engine.history_size == 10
    engine.reset()
    assert engine.history_size == 0
    assert engine.get_trend() == "insufficient_data"
