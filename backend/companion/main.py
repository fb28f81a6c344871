"""
Recovery Companion Backend — local conversational support service.

ARCHITECTURE:
- Dialogue engine: rule-based intents, scripted interventions
  (urge surfing, 5-4-3-2-1 grounding), reflective-listening fallback
- Crisis detector: static keyword tiers, runs upstream of every reply
- State store: in-memory by default, SQL when CHAT_STATE_BACKEND=sql

No language model, no remote calls. Every reply is traceable to a rule,
a flow step or a fallback branch.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from companion.api.routes import chat, crisis
from companion.core.config import settings
from companion.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: ensure tables (conversation_states, crisis_logs) exist."""
    try:
        logger.info("[*] Initializing database...")
        init_db()
        logger.info(f"[OK] Database initialized (state backend: {settings.CHAT_STATE_BACKEND})")
    except Exception:
        logger.error("[ERROR] Startup error", exc_info=True)

    yield


app = FastAPI(
    title="Recovery Companion API",
    description="Local recovery chat: intents, guided interventions, crisis resources.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

app.include_router(chat.router, prefix="/chat", tags=["chat"])
app.include_router(crisis.router, prefix="/crisis", tags=["crisis"])


@app.get("/health")
def health():
    return {"status": "ok", "state_backend": settings.CHAT_STATE_BACKEND}
