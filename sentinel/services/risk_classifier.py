"""
Hysteresis state machine turning smoothed scores into a RiskState.

With hysteresis enabled the next state depends on the current one:

    LOW        -> HIGH if score >= high_risk_entry
               -> SUSPICIOUS if score >= low_risk_exit
    SUSPICIOUS -> HIGH if score >= high_risk_entry
               -> LOW if score <= low_risk_entry
    HIGH       -> LOW if score <= low_risk_entry
               -> SUSPICIOUS if score <= high_risk_exit

Conditions are checked in that fixed order even when the configured
thresholds are inverted, so a misconfiguration yields odd but repeatable
states rather than an error.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from sentinel.core.logger import get_logger
from sentinel.schemas.risk import RiskState, ThresholdConfig

log = get_logger(__name__)

TransitionListener = Callable[[RiskState, RiskState, float], None]


class RiskClassifier:
    def __init__(self, config: Optional[ThresholdConfig] = None, name: str = "risk") -> None:
        self.config = config or ThresholdConfig()
        self.name = name
        self._state = RiskState.LOW
        self._listeners: List[TransitionListener] = []

    @property
    def state(self) -> RiskState:
        return self._state

    def add_listener(self, listener: TransitionListener) -> None:
        """Register `listener(previous, new, score)`, called on every state change."""
        self._listeners.append(listener)

    def evaluate(self, smoothed_score: float) -> RiskState:
        cfg = self.config
        previous = self._state
        if cfg.hysteresis_enabled:
            new_state = self._next_with_hysteresis(previous, smoothed_score, cfg)
        else:
            new_state = self._threshold_lookup(smoothed_score, cfg)

        self._state = new_state
        if new_state != previous:
            suffix = "" if cfg.hysteresis_enabled else " (no hysteresis)"
            log.info(
                "%s STATE CHANGE%s: %s -> %s (score=%.4f)",
                self.name, suffix, previous.value, new_state.value, smoothed_score,
            )
            self._notify(previous, new_state, smoothed_score)
        return new_state

    def reset(self) -> None:
        self._state = RiskState.LOW

    @staticmethod
    def _threshold_lookup(score: float, cfg: ThresholdConfig) -> RiskState:
        if score >= cfg.high_risk_min:
            return RiskState.HIGH
        if score > cfg.low_risk_max:
            return RiskState.SUSPICIOUS
        return RiskState.LOW

    @staticmethod
    def _next_with_hysteresis(current: RiskState, score: float, cfg: ThresholdConfig) -> RiskState:
        if current is RiskState.LOW:
            if score >= cfg.high_risk_entry:
                return RiskState.HIGH
            if score >= cfg.low_risk_exit:
                return RiskState.SUSPICIOUS
            return RiskState.LOW
        if current is RiskState.SUSPICIOUS:
            if score >= cfg.high_risk_entry:
                return RiskState.HIGH
            if score <= cfg.low_risk_entry:
                return RiskState.LOW
            return RiskState.SUSPICIOUS
        if score <= cfg.low_risk_entry:
            return RiskState.LOW
        if score <= cfg.high_risk_exit:
            return RiskState.SUSPICIOUS
        return RiskState.HIGH

    def _notify(self, previous: RiskState, new_state: RiskState, score: float) -> None:
        for listener in self._listeners:
            try:
                listener(previous, new_state, score)
            except Exception:
                log.exception("Transition listener failed for %s", self.name)
