import pytest

from sentinel.schemas.risk import RiskState
from sentinel.services.session_stats import SessionStats


class FakeClock:
    def __init__(self, now=1_000):
        self.now = now

    def __call__(self):
        return self.now


def test_counters_and_buckets():
    stats = SessionStats()
    stats.record_frame()
    stats.record_frame()
    stats.record_face()
    stats.record_inference(0.2, RiskState.LOW)
    stats.record_inference(0.5, RiskState.SUSPICIOUS)
    stats.record_inference(0.8, RiskState.HIGH)
    stats.record_inference(0.7, RiskState.HIGH)

    assert stats.frames_processed == 2
    assert stats.faces_detected == 1
    assert stats.inference_calls == 4
    assert (stats.low_risk_count, stats.suspicious_risk_count, stats.high_risk_count) == (1, 1, 2)
    assert stats.peak_score == pytest.approx(0.8)
    assert stats.average_score == pytest.approx(2.2 / 4)


def test_average_is_zero_without_inferences():
    assert SessionStats().average_score == 0.0


def test_average_tracks_sum_over_calls():
    stats = SessionStats()
    scores = [0.9, 0.1, 0.33, 0.66, 0.5]
    for i, s in enumerate(scores):
        stats.record_inference(s, RiskState.LOW)
        assert stats.average_score == pytest.approx(sum(scores[: i + 1]) / (i + 1))
        assert stats.average_score == pytest.approx(stats.score_sum / stats.inference_calls)


def test_duration_and_reset():
    clock = FakeClock(now=10_000)
    stats = SessionStats(clock=clock)
    clock.now = 12_500
    assert stats.session_duration_ms == 2_500

    stats.record_frame()
    stats.record_face()
    stats.record_inference(0.9, RiskState.HIGH)
    stats.reset()

    assert stats.session_duration_ms == 0
    snap = stats.snapshot()
    assert snap.session_start_time == 12_500
    assert snap.frames_processed == 0
    assert snap.faces_detected == 0
    assert snap.inference_calls == 0
    assert snap.high_risk_count == 0
    assert snap.score_sum == 0.0
    assert snap.peak_score == 0.0
    assert snap.average_score == 0.0


def test_snapshot_is_detached_from_counters():
    stats = SessionStats()
    stats.record_inference(0.4, RiskState.SUSPICIOUS)
    snap = stats.snapshot()
    stats.record_inference(0.6, RiskState.SUSPICIOUS)
    assert snap.inference_calls == 1
    assert stats.snapshot().inference_calls == 2
