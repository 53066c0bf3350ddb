"""
Alert policy for risk-state transitions.

The dispatcher listens to a RiskClassifier and queues an AlertEvent whenever
a stream escalates into SUSPICIOUS or HIGH. Queued events are delivered to
async sinks (sound/vibration/overlay collaborators) by `dispatch()`.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional

from sentinel.core.logger import get_logger
from sentinel.schemas.risk import RiskState

log = get_logger(__name__)

PATTERN_SUSPICIOUS = [0, 200, 100, 200]
PATTERN_HIGH_RISK = [0, 500, 200, 500, 200, 500]


@dataclass
class AlertEvent:
    level: str  # "warning" | "alert"
    risk_state: RiskState
    previous_state: RiskState
    score: float
    vibration: List[int]
    tone: Optional[str] = None
    stream: Optional[str] = None
    session_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


AlertSink = Callable[[AlertEvent], Awaitable[None]]


class AlertDispatcher:
    def __init__(
        self,
        sinks: Optional[List[AlertSink]] = None,
        sound_enabled: bool = True,
        session_id: Optional[str] = None,
        stream: Optional[str] = None,
    ) -> None:
        self.sinks = sinks or []
        self.sound_enabled = sound_enabled
        self.session_id = session_id
        self.stream = stream
        self._pending: Deque[AlertEvent] = deque()

    def on_transition(self, previous: RiskState, new_state: RiskState, score: float) -> None:
        event = self.build_event(previous, new_state, score)
        if event is not None:
            self._pending.append(event)

    def build_event(self, previous: RiskState, new_state: RiskState, score: float) -> Optional[AlertEvent]:
        if new_state is RiskState.SUSPICIOUS:
            level, pattern, tone = "warning", PATTERN_SUSPICIOUS, "beep"
        elif new_state is RiskState.HIGH:
            level, pattern, tone = "alert", PATTERN_HIGH_RISK, "alert"
        else:
            return None
        return AlertEvent(
            level=level,
            risk_state=new_state,
            previous_state=previous,
            score=score,
            vibration=list(pattern),
            tone=tone if self.sound_enabled else None,
            stream=self.stream,
            session_id=self.session_id,
        )

    def drain(self) -> List[AlertEvent]:
        events = list(self._pending)
        self._pending.clear()
        return events

    async def dispatch(self) -> List[AlertEvent]:
        """Deliver queued events to every sink; returns what was delivered."""
        events = self.drain()
        for event in events:
            for sink in self.sinks:
                try:
                    await sink(event)
                except Exception as exc:
                    log.exception("Alert sink failed: %s", exc)
        return events
