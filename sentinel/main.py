from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sentinel import __version__
from sentinel.core.config import get_settings
from sentinel.workers.background_tasks import get_task_runner
from sentinel.workers.scheduler import get_scheduler, cleanup_exports
from sentinel.services.session_manager import get_session_manager
from sentinel.api import routes_config, routes_fusion, routes_health, routes_reports, routes_sessions, routes_websocket

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await get_task_runner().start()
    sched = get_scheduler()
    await sched.start()
    sched.schedule("cleanup_exports", cleanup_exports, interval_sec=3600, delay_sec=60)
    try:
        yield
    finally:
        # Shutdown
        await get_session_manager().close_all()
        await get_scheduler().stop()
        await get_task_runner().stop()


app = FastAPI(
    title="Sentinel API",
    description="Temporal deepfake risk scoring: smoothing, hysteresis, fusion and session statistics",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"] if get_settings().ENV == "development" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(routes_config.router, prefix="/config", tags=["Config"])
app.include_router(routes_sessions.router, prefix="/sessions", tags=["Sessions"])
app.include_router(routes_fusion.router, prefix="/fusion", tags=["Fusion"])
app.include_router(routes_reports.router, prefix="/reports", tags=["Reports"])
app.include_router(routes_health.router, prefix="/health", tags=["Health"])
app.include_router(routes_websocket.router, tags=["WebSocket"])

@app.get("/")
def root():
    return {"status": "Sentinel risk scoring running"}
