"""
Session reports and evidence exports.

- `build_detection_report` summarizes a session into a DetectionReport.
- `build_session_export` produces the full JSON export for sharing.
- `ReportStore` keeps the most recent reports in a single JSON file.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from sentinel import __version__
from sentinel.core.config import get_settings
from sentinel.core.logger import get_logger
from sentinel.schemas.session import DetectionReport
from sentinel.services.session_manager import ScoringSession

log = get_logger(__name__)

APP_NAME = "Sentinel"
REPORTS_FILE = "detection_reports.json"


def build_detection_report(session: ScoringSession) -> DetectionReport:
    stats = session.snapshot()
    state = session.current_state()
    return DetectionReport(
        mode=session.mode.value,
        confidence=stats.average_score,
        risk_level=state.display_name,
        faces_detected=stats.faces_detected,
        session_duration_ms=stats.session_duration_ms,
        average_score=stats.average_score,
        peak_score=stats.peak_score,
        frames_processed=stats.frames_processed,
        inference_calls=stats.inference_calls,
    )


def build_session_export(session: ScoringSession) -> Dict[str, Any]:
    stats = session.snapshot()
    state = session.current_state()
    now = datetime.now()
    assessment = session.last_assessment
    return {
        "export_timestamp": int(now.timestamp() * 1000),
        "export_date": now.strftime("%Y-%m-%d %H:%M:%S"),
        "app_name": APP_NAME,
        "app_version": __version__,
        "report_type": "Evidence-Grade Deepfake Detection Report",
        "session_id": session.session_id,
        "mode": session.mode.value,
        "session_data": {
            "duration_ms": stats.session_duration_ms,
            "duration_seconds": stats.session_duration_ms // 1000,
            "frames_processed": stats.frames_processed,
            "faces_detected": stats.faces_detected,
            "inference_calls": stats.inference_calls,
            "risk_distribution": {
                "low_risk_count": stats.low_risk_count,
                "suspicious_risk_count": stats.suspicious_risk_count,
                "high_risk_count": stats.high_risk_count,
            },
            "confidence_metrics": {
                "average_score": f"{stats.average_score:.4f}",
                "peak_score": f"{stats.peak_score:.4f}",
                "average_percentage": int(stats.average_score * 100),
                "peak_percentage": int(stats.peak_score * 100),
            },
            "final_assessment": {
                "risk_level": state.display_name,
                "explanation": state.explanation,
            },
        },
        "fusion": {
            "assessment": assessment.model_dump() if assessment else None,
            "trend": session.trend(),
        },
        "metadata": {
            "multi_modal_fusion": True,
            "hysteresis_enabled": session.config.hysteresis_enabled,
            "smoothing_window_size": session.config.smoothing_window_size,
        },
    }


def _tmp_dir() -> Path:
    return Path(get_settings().SENTINEL_TMP)


def session_export_path(session_id: str) -> Path:
    base = _tmp_dir() / "sessions" / session_id
    base.mkdir(parents=True, exist_ok=True)
    return base / "session_export.json"


def write_session_export(session_id: str, payload: Dict[str, Any]) -> Path:
    out = session_export_path(session_id)
    out.write_text(json.dumps(payload, indent=2))
    log.info("Session %s exported -> %s", session_id, out)
    return out


class ReportStore:
    """Most-recent-first report history capped at `max_reports`."""

    def __init__(self, path: Optional[Path] = None, max_reports: Optional[int] = None) -> None:
        settings = get_settings()
        self.path = path or _tmp_dir() / REPORTS_FILE
        self.max_reports = max_reports or settings.MAX_REPORTS

    def save(self, report: DetectionReport) -> None:
        reports = self.load_all()
        reports.insert(0, report)
        del reports[self.max_reports:]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([r.model_dump() for r in reports], indent=2))
        log.info("Report saved. Total reports: %d", len(reports))

    def load_all(self) -> List[DetectionReport]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
            return [DetectionReport.model_validate(item) for item in data]
        except Exception:
            log.exception("Failed to load reports from %s", self.path)
            return []

    def statistics(self) -> Dict[str, Any]:
        reports = self.load_all()
        if not reports:
            return {
                "total_reports": 0,
                "average_confidence": 0.0,
                "high_risk_count": 0,
                "low_risk_count": 0,
                "suspicious_count": 0,
                "total_faces_detected": 0,
                "total_session_time": 0,
            }
        high = sum(1 for r in reports if "high" in r.risk_level.lower())
        low = sum(1 for r in reports if "low" in r.risk_level.lower())
        return {
            "total_reports": len(reports),
            "average_confidence": sum(r.confidence for r in reports) / len(reports),
            "high_risk_count": high,
            "low_risk_count": low,
            "suspicious_count": len(reports) - high - low,
            "total_faces_detected": sum(r.faces_detected for r in reports),
            "total_session_time": sum(r.session_duration_ms for r in reports),
        }


def load_session_export(session_id: str) -> Optional[Dict[str, Any]]:
    path = _tmp_dir() / "sessions" / session_id / "session_export.json"
    if not path.exists():
        return None
    return json.loads(path.read_text())
