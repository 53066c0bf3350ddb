from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class RiskState(str, Enum):
    LOW = "low"
    SUSPICIOUS = "suspicious"
    HIGH = "high"

    @property
    def display_name(self) -> str:
        return _PRESENTATION[self]["display_name"]

    @property
    def explanation(self) -> str:
        return _PRESENTATION[self]["explanation"]


_PRESENTATION: Dict[RiskState, Dict[str, str]] = {
    RiskState.LOW: {
        "display_name": "Low Risk",
        "explanation": "No strong signs of manipulation detected. Continue normally, but stay aware.",
    },
    RiskState.SUSPICIOUS: {
        "display_name": "Potential Manipulation Detected",
        "explanation": "Some signals suggest this content may be altered. Verify the source before acting on it.",
    },
    RiskState.HIGH: {
        "display_name": "High Risk of Deepfake",
        "explanation": (
            "Strong indicators of synthetic or manipulated media. Treat this content with "
            "caution and verify through trusted channels."
        ),
    },
}


class ThresholdConfig(BaseModel):
    """Operator-tunable thresholds shared by the smoother and classifier.

    Entry/exit points are derived from `low_risk_max` and `high_risk_min`
    offset by `margin`. Nothing here enforces `low_risk_max < high_risk_min`;
    an inverted configuration still evaluates deterministically.
    """

    model_config = ConfigDict(frozen=True)

    low_risk_max: float = 0.35
    high_risk_min: float = 0.65
    hysteresis_enabled: bool = True
    smoothing_window_size: int = 15
    margin: float = 0.05

    @classmethod
    def from_settings(cls, settings: Any) -> "ThresholdConfig":
        return cls(
            low_risk_max=settings.LOW_RISK_MAX,
            high_risk_min=settings.HIGH_RISK_MIN,
            hysteresis_enabled=settings.HYSTERESIS_ENABLED,
            smoothing_window_size=settings.SMOOTHING_WINDOW,
            margin=settings.HYSTERESIS_MARGIN,
        )

    # Rounded so 0.35 - 0.05 compares as 0.30 rather than 0.29999999999999993
    @property
    def low_risk_entry(self) -> float:
        return round(self.low_risk_max - self.margin, 6)

    @property
    def low_risk_exit(self) -> float:
        return round(self.low_risk_max + self.margin, 6)

    @property
    def high_risk_entry(self) -> float:
        return round(self.high_risk_min + self.margin, 6)

    @property
    def high_risk_exit(self) -> float:
        return round(self.high_risk_min - self.margin, 6)

    def update(self, **changes: Any) -> "ThresholdConfig":
        """Return a copy with `changes` applied; None values are ignored."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return self.model_copy(update=changes)

    def describe(self) -> Dict[str, Any]:
        return {
            **self.model_dump(),
            "low_risk_entry": self.low_risk_entry,
            "low_risk_exit": self.low_risk_exit,
            "high_risk_entry": self.high_risk_entry,
            "high_risk_exit": self.high_risk_exit,
        }
