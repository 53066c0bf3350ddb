"""Sentinel temporal risk-scoring package.

Scores per-frame deepfake classifier outputs over time: moving-average
smoothing, hysteresis risk states, video/audio fusion and session
statistics. Subpackages include:
- api: FastAPI route definitions
- core: configuration and logging
- services: the scoring pipeline, sessions, alerting and reports
- schemas: Pydantic models
- workers: background export queue and scheduler
"""

__all__ = [
    "api",
    "core",
    "services",
    "schemas",
    "workers",
]

__version__ = "1.0.0"
