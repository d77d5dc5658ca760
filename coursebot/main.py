"""
CourseBot — FastAPI entry point.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from coursebot.config import settings
from coursebot.dependencies import require_database
from coursebot.middleware.error_handler import global_exception_handler
from coursebot.middleware.logging_middleware import logging_middleware
from coursebot.middleware.rate_limit import limiter
from coursebot.models.database import engine, init_db
from coursebot.services.ai_service import AgentSessions, get_sessions
from coursebot.services.course_store import get_store
from coursebot.services.prompt_loader import get_prompt_loader

# ── Routes ───────────────────────────────────────────────
from coursebot.routes.chat import router as chat_router, ws_router
from coursebot.routes.courses import router as courses_router


# ── Lifespan ─────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    app.state.database_error = None
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database unavailable at startup: {e}")
        app.state.database_error = str(e)
    else:
        result = await get_store().test_connection()
        if not result.ok:
            logger.error(f"Database connection test failed: {result.error}")
            app.state.database_error = result.error
        else:
            logger.info("Database initialized")

    get_sessions()
    await get_prompt_loader().load()
    yield
    await engine.dispose()
    logger.info("Shutting down")


# ── App ──────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Course catalog and AI course assistant API",
    lifespan=lifespan,
)

# ── Rate Limiter ─────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS ─────────────────────────────────────────────────
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Custom Middleware ────────────────────────────────────
app.middleware("http")(global_exception_handler)
app.middleware("http")(logging_middleware)

# ── Register Routers ────────────────────────────────────
app.include_router(courses_router, dependencies=[Depends(require_database)])
app.include_router(chat_router)
app.include_router(ws_router)


# ── Health Check ─────────────────────────────────────────
@app.get("/api/health", tags=["health"])
async def health(sessions: AgentSessions = Depends(get_sessions)):
    database_error = getattr(app.state, "database_error", None)
    return {
        "status": "degraded" if database_error else "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": {"connected": database_error is None, "error": database_error},
        "providers": sorted(p.value for p in sessions.registry.available_providers()),
    }


def run():
    import uvicorn
    uvicorn.run(
        "coursebot.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )


# ── Run ──────────────────────────────────────────────────
if __name__ == "__main__":
    run()
