from fastapi import APIRouter

from sentinel.schemas.threat import AssessRequest
from sentinel.services.fusion_engine import ThreatFusionEngine
from sentinel.services.threat_explainer import explain_threat, quick_tip

router = APIRouter()


@router.post("/assess")
def assess_scores(body: AssessRequest):
    """One-shot fusion of explicit scores; omitted modalities count as absent."""
    assessment = ThreatFusionEngine().assess_threat(body.video_score, body.audio_score)
    return {
        "assessment": assessment,
        "explanation": explain_threat(assessment),
        "tip": quick_tip(assessment.fused_score),
    }
