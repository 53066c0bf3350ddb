from __future__ import annotations

from collections import deque
from typing import Deque, List

from sentinel.core.logger import get_logger

log = get_logger(__name__)


class ScoreSmoother:
    """Moving average over the most recent `window_size` raw scores.

    Scores are not clamped; out-of-range values shift the mean like any other.
    The window size may change between calls; a shrink is applied on the next
    `ingest` by evicting from the front.
    """

    def __init__(self, window_size: int = 15) -> None:
        self.window_size = window_size
        self._window: Deque[float] = deque()

    def ingest(self, raw_score: float) -> float:
        self._window.append(raw_score)
        # Non-positive sizes still keep the newest score so the mean is defined
        limit = max(self.window_size, 1)
        while len(self._window) > limit:
            self._window.popleft()
        smoothed = sum(self._window) / len(self._window)
        log.debug("RAW=%.4f SMOOTHED=%.4f window=%d", raw_score, smoothed, len(self._window))
        return smoothed

    @property
    def values(self) -> List[float]:
        return list(self._window)

    def __len__(self) -> int:
        return len(self._window)

    def reset(self) -> None:
        self._window.clear()
