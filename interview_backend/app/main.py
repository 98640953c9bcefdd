# interview_backend/app/main.py
from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

# .env as early as possible
load_dotenv()

from interview_backend.app.api.candidates import router as candidates_router
from interview_backend.app.api.interviews import navigation_router
from interview_backend.app.api.interviews import registry as session_registry
from interview_backend.app.api.interviews import router as interviews_router
from interview_backend.app.api.resume_upload import router as resume_upload_router
from interview_backend.app.config import settings
from interview_backend.app.database import check_database_connection, init_database
from interview_backend.app.services.interview_session import SessionRegistry

logger = logging.getLogger(__name__)


async def run_clock(
    registry: SessionRegistry,
    interval: float,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    """
    Drive question timers and heartbeat saves for every live session.

    Polling runs in a worker thread because it saves snapshots. Interviews
    closed by an expiring last question are scored on the registry's pool.
    Returns the number of cycles run (only reached with ``max_cycles``).
    """
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        try:
            fired = await asyncio.to_thread(registry.poll_all)
            if fired:
                logger.info(f"Clock cycle auto-submitted {fired} answer(s)")
        except Exception:
            logger.exception("Clock cycle failed")
        cycles += 1
        await sleep(interval)
    return cycles


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    clock_task: Optional[asyncio.Task] = None
    if settings.CLOCK_ENABLED:
        clock_task = asyncio.create_task(run_clock(session_registry, settings.CLOCK_INTERVAL_SECONDS))
    logger.info("Interview API started")

    yield

    if clock_task is not None:
        clock_task.cancel()
        try:
            await clock_task
        except asyncio.CancelledError:
            pass
    await asyncio.to_thread(session_registry.shutdown)
    logger.info("Interview API shutting down")


app = FastAPI(
    title="Interview Assistant API",
    description="Timed technical interviews with AI scoring",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api"

app.include_router(resume_upload_router,
                   prefix=f"{API_PREFIX}/resume",      tags=["Resume"])
app.include_router(candidates_router,
                   prefix=f"{API_PREFIX}/candidates",  tags=["Candidates"])
app.include_router(interviews_router,
                   prefix=f"{API_PREFIX}/interviews",  tags=["Interviews"])
app.include_router(navigation_router,
                   prefix=API_PREFIX,                  tags=["Navigation"])


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return HTMLResponse(content="", status_code=204)


@app.get("/")
async def root():
    return {"message": "Interview Assistant API", "docs": "/docs", "health": "/health"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "database": check_database_connection(),
        "openai_key_set": bool(settings.OPENAI_API_KEY or os.getenv("OPENAI_API_KEY")),
        "storage": settings.STORAGE_BACKEND,
        "active_sessions": sum(1 for engine, _ in session_registry.items() if engine.session.is_active),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
