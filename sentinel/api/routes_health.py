from fastapi import APIRouter

from sentinel.services.session_manager import get_session_manager
from sentinel.workers.background_tasks import get_task_runner
from sentinel.workers.scheduler import get_scheduler

router = APIRouter()

@router.get("/ready")
def readiness_probe():
    return {
        "status": "ready",
        "sessions": len(get_session_manager().list()),
        "task_runner": get_task_runner().running,
        "scheduled_jobs": get_scheduler().jobs,
    }

@router.get("/live")
def liveness_probe():
    return {"status": "alive"}
