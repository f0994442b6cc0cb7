"""
failsafe.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn failsafe.api.main:app --reload --port 8000

or ``python -m failsafe``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from failsafe.api.deps import get_config, get_engine  # noqa: E402
from failsafe.api.routes.chat import router as chat_router  # noqa: E402
from failsafe.api.routes.matches import router as matches_router  # noqa: E402
from failsafe.api.routes.posts import router as posts_router  # noqa: E402
from failsafe.api.routes.realtime import router as realtime_router  # noqa: E402
from failsafe.api.routes.users import router as users_router  # noqa: E402
from failsafe.database.engine import init_db  # noqa: E402
from failsafe.errors import (  # noqa: E402
    ConcurrentUpdateError,
    FailsafeError,
    NoCandidatesError,
    NotAMemberError,
    NotFoundError,
    UsernameTakenError,
)

logger = logging.getLogger(__name__)

# Most specific first; anything else under FailsafeError is a 500.
_STATUS_BY_ERROR: list[tuple[type[FailsafeError], int]] = [
    (NotFoundError, 404),
    (NoCandidatesError, 404),
    (NotAMemberError, 403),
    (UsernameTakenError, 409),
    (ConcurrentUpdateError, 409),
]


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


def status_for(exc: FailsafeError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — ensure tables exist, optionally seed."""
    overrides = app.dependency_overrides
    engine = overrides.get(get_engine, get_engine)()
    cfg = overrides.get(get_config, get_config)()

    init_db(engine, seed=cfg.seed_sample_data)
    logger.info("%s API started — engine ready (%s)", cfg.app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="FailSafe API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FailsafeError)
async def failsafe_error_handler(request: Request, exc: FailsafeError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("Unhandled domain error on %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=status, content={"detail": "Internal server error"})
    return JSONResponse(status_code=status, content={"detail": str(exc)})


# Mount routers
app.include_router(users_router, prefix="/api")
app.include_router(posts_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(realtime_router)


@app.get("/api/health")
def health():
    return {"status": "ok"}
