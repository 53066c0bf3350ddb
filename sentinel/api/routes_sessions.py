from fastapi import APIRouter, HTTPException

from sentinel.core.logger import get_logger
from sentinel.schemas.session import ScoreInput, ScoreResult, SessionCreate, SessionReset
from sentinel.services.report_exporter import load_session_export
from sentinel.services.session_manager import ScoringSession, get_session_manager
from sentinel.services.threat_explainer import explain_threat, quick_tip
from sentinel.workers.background_tasks import get_task_runner, enqueue_export_session

router = APIRouter()
log = get_logger(__name__)


def _session_or_404(session_id: str) -> ScoringSession:
    try:
        return get_session_manager().get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown session")


@router.post("")
async def create_session(body: SessionCreate):
    session = await get_session_manager().create(mode=body.mode)
    return session.describe()


@router.get("")
def list_sessions():
    return {"sessions": [s.describe() for s in get_session_manager().list()]}


@router.get("/{session_id}")
def get_session(session_id: str):
    return _session_or_404(session_id).describe()


@router.delete("/{session_id}")
async def close_session(session_id: str):
    _session_or_404(session_id)
    await get_session_manager().close(session_id)
    return {"ok": True, "session_id": session_id}


@router.post("/{session_id}/reset")
async def reset_session(session_id: str, body: SessionReset):
    """Start a fresh session generation (mode switch); in-flight results are discarded."""
    session = _session_or_404(session_id)
    generation = session.reset(mode=body.mode)
    return {"session_id": session_id, "mode": session.mode.value, "generation": generation}


@router.post("/{session_id}/scores", response_model=ScoreResult)
async def submit_score(session_id: str, body: ScoreInput):
    """Feed one raw score from the inference collaborator through the pipeline."""
    session = _session_or_404(session_id)
    previous = session.current_state(body.modality)
    outcome = session.submit_score(body.modality, body.raw_score, face_detected=body.face_detected)
    await session.dispatch_alerts()
    if outcome is None:
        return ScoreResult(
            session_id=session_id,
            modality=body.modality,
            risk_state=previous,
            previous_state=previous,
            generation=session.generation,
        )
    return ScoreResult(
        session_id=session_id,
        modality=body.modality,
        raw_score=outcome.raw_score,
        smoothed_score=outcome.smoothed_score,
        risk_state=outcome.risk_state,
        previous_state=outcome.previous_state,
        transitioned=outcome.transitioned,
        generation=outcome.generation,
    )


@router.get("/{session_id}/stats")
def get_stats(session_id: str):
    return _session_or_404(session_id).snapshot()


@router.get("/{session_id}/assessment")
async def get_assessment(session_id: str):
    """Fuse the session's latest video-channel and audio scores."""
    session = _session_or_404(session_id)
    assessment = session.assess()
    return {
        "session_id": session_id,
        "assessment": assessment,
        "explanation": explain_threat(assessment),
        "tip": quick_tip(assessment.fused_score),
        "trend": session.trend(),
    }


@router.get("/{session_id}/trend")
def get_trend(session_id: str):
    return {"session_id": session_id, "trend": _session_or_404(session_id).trend()}


@router.post("/{session_id}/export")
async def export_session(session_id: str):
    session = _session_or_404(session_id)
    job_id = await enqueue_export_session(session)
    return {"session_id": session_id, "job_id": job_id, "status": get_task_runner().status(job_id)}


@router.get("/{session_id}/report")
def get_report(session_id: str):
    export = load_session_export(session_id)
    if export is None:
        raise HTTPException(status_code=404, detail="No export for this session")
    return export
