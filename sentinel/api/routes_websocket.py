from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Any, Dict
import json

from pydantic import ValidationError

from sentinel.core.logger import get_logger
from sentinel.schemas.session import ScoreInput, SessionMode
from sentinel.services.session_manager import ScoringSession, get_session_manager

router = APIRouter()
log = get_logger(__name__)


async def handle_score_message(session: ScoringSession, message: Dict[str, Any]) -> Dict[str, Any]:
    """Run one score message through the session and build the risk reply."""
    score = ScoreInput.model_validate(message)
    outcome = session.submit_score(score.modality, score.raw_score, face_detected=score.face_detected)
    alerts = await session.dispatch_alerts()
    reply: Dict[str, Any] = {
        "type": "risk",
        "session_id": session.session_id,
        "modality": score.modality.value,
        "generation": session.generation,
        "timestamp": score.timestamp,
        "alerts": [a.level for a in alerts],
    }
    if outcome is None:
        reply.update({"face_detected": False, "risk_state": session.current_state(score.modality).value})
    else:
        reply.update(
            {
                "face_detected": True,
                "smoothed_score": outcome.smoothed_score,
                "risk_state": outcome.risk_state.value,
                "transitioned": outcome.transitioned,
            }
        )
    return reply


@router.websocket("/ws/sessions/{session_id}")
async def session_stream(websocket: WebSocket, session_id: str):
    """Real-time scoring for one session.

    Messages:
    - {"type": "score", "modality": "video", "raw_score": 0.42, "face_detected": true}
      -> {"type": "risk", ...}
    - {"type": "assess"} -> {"type": "assessment", ...}
    - {"type": "reset", "mode": "screen_capture"} -> {"type": "reset", "generation": N}
    - {"type": "ping"} -> {"type": "pong"}
    """
    await websocket.accept()
    try:
        session = get_session_manager().get(session_id)
    except KeyError:
        await websocket.send_json({"type": "error", "message": "Unknown session"})
        await websocket.close()
        return
    log.info("WebSocket connected for session %s", session_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            kind = message.get("type")
            if kind == "score":
                try:
                    reply = await handle_score_message(session, message)
                except ValidationError as exc:
                    await websocket.send_json({"type": "error", "message": str(exc)})
                    continue
                await websocket.send_json(reply)
            elif kind == "assess":
                assessment = session.assess()
                await websocket.send_json(
                    {"type": "assessment", "data": assessment.model_dump(), "trend": session.trend()}
                )
            elif kind == "reset":
                mode = message.get("mode")
                try:
                    new_mode = SessionMode(mode) if mode else None
                except ValueError:
                    await websocket.send_json({"type": "error", "message": f"unknown mode {mode!r}"})
                    continue
                generation = session.reset(mode=new_mode)
                await websocket.send_json({"type": "reset", "generation": generation, "mode": session.mode.value})
            elif kind == "ping":
                await websocket.send_json({"type": "pong"})
            else:
                await websocket.send_json({"type": "error", "message": "unknown message type"})
    except WebSocketDisconnect:
        log.info("WebSocket closed for session %s", session_id)
