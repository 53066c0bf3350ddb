import pytest

from sentinel.schemas.risk import RiskState, ThresholdConfig
from sentinel.services.risk_classifier import RiskClassifier


def run(classifier, scores):
    return [classifier.evaluate(s) for s in scores]


def test_derived_thresholds_from_defaults():
    cfg = ThresholdConfig()
    assert cfg.low_risk_entry == pytest.approx(0.30)
    assert cfg.low_risk_exit == pytest.approx(0.40)
    assert cfg.high_risk_entry == pytest.approx(0.70)
    assert cfg.high_risk_exit == pytest.approx(0.60)


def test_initial_state_is_low():
    assert RiskClassifier().state is RiskState.LOW


def test_rising_scores_pass_through_suspicious():
    classifier = RiskClassifier()
    states = run(classifier, [0.2, 0.38, 0.40, 0.5, 0.69, 0.70])
    assert states == [
        RiskState.LOW,
        RiskState.LOW,
        RiskState.SUSPICIOUS,
        RiskState.SUSPICIOUS,
        RiskState.SUSPICIOUS,
        RiskState.HIGH,
    ]


def test_single_large_jump_goes_low_to_high():
    classifier = RiskClassifier()
    assert classifier.evaluate(0.9) is RiskState.HIGH


def test_oscillation_inside_dead_zone_settles_in_suspicious():
    classifier = RiskClassifier(ThresholdConfig(low_risk_max=0.35, high_risk_min=0.65))
    states = run(classifier, [0.5, 0.55] * 20)
    assert set(states) == {RiskState.SUSPICIOUS}


def test_high_requires_dropping_below_exit():
    classifier = RiskClassifier()
    classifier.evaluate(0.9)
    assert classifier.evaluate(0.62) is RiskState.HIGH
    assert classifier.evaluate(0.60) is RiskState.SUSPICIOUS
    assert classifier.evaluate(0.65) is RiskState.SUSPICIOUS
    assert classifier.evaluate(0.31) is RiskState.SUSPICIOUS
    assert classifier.evaluate(0.30) is RiskState.LOW


def test_high_drops_straight_to_low():
    classifier = RiskClassifier()
    classifier.evaluate(0.95)
    assert classifier.evaluate(0.1) is RiskState.LOW


def test_without_hysteresis_is_plain_lookup():
    classifier = RiskClassifier(ThresholdConfig(hysteresis_enabled=False))
    assert classifier.evaluate(0.65) is RiskState.HIGH
    assert classifier.evaluate(0.64) is RiskState.SUSPICIOUS
    assert classifier.evaluate(0.36) is RiskState.SUSPICIOUS
    assert classifier.evaluate(0.35) is RiskState.LOW
    assert classifier.state is RiskState.LOW


def test_inverted_thresholds_are_deterministic():
    # Known edge case: low_risk_max above high_risk_min is accepted and
    # evaluated in the fixed rule order, which toggles LOW <-> HIGH at 0.5.
    cfg = ThresholdConfig(low_risk_max=0.8, high_risk_min=0.2)
    first = run(RiskClassifier(cfg), [0.5, 0.5, 0.5, 0.5])
    second = run(RiskClassifier(cfg), [0.5, 0.5, 0.5, 0.5])
    assert first == second == [RiskState.HIGH, RiskState.LOW, RiskState.HIGH, RiskState.LOW]


def test_config_change_applies_on_next_evaluate():
    classifier = RiskClassifier()
    assert classifier.evaluate(0.45) is RiskState.SUSPICIOUS
    classifier.config = classifier.config.update(low_risk_max=0.5)
    assert classifier.evaluate(0.45) is RiskState.LOW


def test_listeners_receive_transitions_only():
    seen = []
    classifier = RiskClassifier()
    classifier.add_listener(lambda prev, new, score: seen.append((prev, new, score)))
    run(classifier, [0.1, 0.45, 0.5, 0.9])
    assert seen == [
        (RiskState.LOW, RiskState.SUSPICIOUS, 0.45),
        (RiskState.SUSPICIOUS, RiskState.HIGH, 0.9),
    ]


def test_failing_listener_does_not_stop_evaluation():
    seen = []

    def broken(prev, new, score):
        raise RuntimeError("boom")

    classifier = RiskClassifier()
    classifier.add_listener(broken)
    classifier.add_listener(lambda prev, new, score: seen.append(new))
    assert classifier.evaluate(0.9) is RiskState.HIGH
    assert seen == [RiskState.HIGH]


def test_reset_returns_to_low():
    classifier = RiskClassifier()
    classifier.evaluate(0.9)
    classifier.reset()
    assert classifier.state is RiskState.LOW
