import pytest

from sentinel.schemas.risk import RiskState
from sentinel.services.alerting import PATTERN_HIGH_RISK, PATTERN_SUSPICIOUS, AlertDispatcher
from sentinel.services.risk_classifier import RiskClassifier


def test_escalations_queue_events():
    dispatcher = AlertDispatcher(stream="video")
    classifier = RiskClassifier()
    classifier.add_listener(dispatcher.on_transition)
    for score in (0.45, 0.9, 0.1):
        classifier.evaluate(score)

    events = dispatcher.drain()
    assert [e.level for e in events] == ["warning", "alert"]
    assert events[0].vibration == PATTERN_SUSPICIOUS
    assert events[0].tone == "beep"
    assert events[1].vibration == PATTERN_HIGH_RISK
    assert events[1].tone == "alert"
    assert events[1].previous_state is RiskState.SUSPICIOUS
    assert dispatcher.drain() == []


def test_sound_disabled_keeps_vibration_only():
    dispatcher = AlertDispatcher(sound_enabled=False)
    event = dispatcher.build_event(RiskState.LOW, RiskState.HIGH, 0.9)
    assert event.tone is None
    assert event.vibration == PATTERN_HIGH_RISK


def test_return_to_low_raises_no_alert():
    dispatcher = AlertDispatcher()
    assert dispatcher.build_event(RiskState.HIGH, RiskState.LOW, 0.1) is None


@pytest.mark.asyncio
async def test_dispatch_survives_failing_sink():
    delivered = []

    async def broken(event):
        raise RuntimeError("speaker unavailable")

    async def recorder(event):
        delivered.append(event.level)

    dispatcher = AlertDispatcher(sinks=[broken, recorder])
    dispatcher.on_transition(RiskState.LOW, RiskState.SUSPICIOUS, 0.45)
    events = await dispatcher.dispatch()
    assert [e.level for e in events] == ["warning"]
    assert delivered == ["warning"]
