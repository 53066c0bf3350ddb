import pytest

from sentinel.services.smoother import ScoreSmoother


def test_mean_of_partial_window():
    smoother = ScoreSmoother(window_size=15)
    assert smoother.ingest(0.2) == pytest.approx(0.2)
    assert smoother.ingest(0.4) == pytest.approx(0.3)
    assert smoother.ingest(0.6) == pytest.approx(0.4)
    assert len(smoother) == 3


def test_oldest_scores_are_evicted():
    smoother = ScoreSmoother(window_size=3)
    for score in (0.1, 0.2, 0.3, 0.4):
        smoother.ingest(score)
    # window now holds 0.2, 0.3, 0.4 before the next push
    assert smoother.ingest(0.5) == pytest.approx(0.4)
    assert smoother.values == pytest.approx([0.3, 0.4, 0.5])


def test_shrinking_window_trims_on_next_ingest():
    smoother = ScoreSmoother(window_size=5)
    for score in (0.1, 0.2, 0.3, 0.4, 0.5):
        smoother.ingest(score)
    smoother.window_size = 2
    assert len(smoother) == 5
    assert smoother.ingest(0.9) == pytest.approx(0.7)
    assert len(smoother) == 2


def test_out_of_range_scores_are_not_clamped():
    smoother = ScoreSmoother(window_size=2)
    smoother.ingest(0.5)
    assert smoother.ingest(1.5) == pytest.approx(1.0)
    assert smoother.ingest(-1.5) == pytest.approx(0.0)


def test_non_positive_window_keeps_latest_score():
    smoother = ScoreSmoother(window_size=0)
    smoother.ingest(0.3)
    assert smoother.ingest(0.8) == pytest.approx(0.8)
    assert len(smoother) == 1


def test_reset_clears_window():
    smoother = ScoreSmoother(window_size=4)
    smoother.ingest(0.9)
    smoother.reset()
    assert len(smoother) == 0
    assert smoother.ingest(0.1) == pytest.approx(0.1)
