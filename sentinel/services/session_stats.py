from __future__ import annotations

import time
from typing import Callable

from sentinel.schemas.risk import RiskState
from sentinel.schemas.session import SessionStatsSnapshot


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStats:
    """Running counters for one monitoring session.

    Derived values (`average_score`, `session_duration_ms`) are computed on
    every read. Callers own synchronization.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        self.session_start_time = self._clock()
        self.frames_processed = 0
        self.faces_detected = 0
        self.inference_calls = 0
        self.low_risk_count = 0
        self.suspicious_risk_count = 0
        self.high_risk_count = 0
        self.score_sum = 0.0
        self.peak_score = 0.0

    def record_frame(self) -> None:
        self.frames_processed += 1

    def record_face(self) -> None:
        self.faces_detected += 1

    def record_inference(self, smoothed_score: float, risk_state: RiskState) -> None:
        self.inference_calls += 1
        self.score_sum += smoothed_score
        if smoothed_score > self.peak_score:
            self.peak_score = smoothed_score
        if risk_state is RiskState.LOW:
            self.low_risk_count += 1
        elif risk_state is RiskState.SUSPICIOUS:
            self.suspicious_risk_count += 1
        else:
            self.high_risk_count += 1

    @property
    def average_score(self) -> float:
        if self.inference_calls == 0:
            return 0.0
        return self.score_sum / self.inference_calls

    @property
    def session_duration_ms(self) -> int:
        return max(self._clock() - self.session_start_time, 0)

    def snapshot(self) -> SessionStatsSnapshot:
        return SessionStatsSnapshot(
            session_start_time=self.session_start_time,
            frames_processed=self.frames_processed,
            faces_detected=self.faces_detected,
            inference_calls=self.inference_calls,
            low_risk_count=self.low_risk_count,
            suspicious_risk_count=self.suspicious_risk_count,
            high_risk_count=self.high_risk_count,
            score_sum=self.score_sum,
            peak_score=self.peak_score,
            average_score=self.average_score,
            session_duration_ms=self.session_duration_ms,
        )
