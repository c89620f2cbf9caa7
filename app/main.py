import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Import All API Routes
from app.api.routes import sessions, analytics, plan, usage, health

# ✅ Import Core Services
from app.core.config import FRONTEND_URL, LOG_LEVEL, LOG_DIR, SUPABASE_JWT_SECRET
from app.core.logging_config import setup_logging
from app.db.init_db import init_db
from app.repositories.session_repository import SQL_BACKEND, configure_session_backend

logger = logging.getLogger(__name__)


# ============================================
# ✅ STARTUP
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL, LOG_DIR)

    if not SUPABASE_JWT_SECRET:
        logger.error("SUPABASE_JWT_SECRET is not set; all authenticated requests will be rejected")

    # Storage backend is chosen once; the database is preferred
    if configure_session_backend() == SQL_BACKEND:
        init_db()
    else:
        logger.warning("Running with the local session cache")

    logger.info("InterviewAce API started")
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="InterviewAce API", lifespan=lifespan)

# ✅ CORS LOCKDOWN: ONLY ALLOW THE FRONTEND
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:5173",      # vite dev server
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(sessions.router)
app.include_router(analytics.router)
app.include_router(plan.router)
app.include_router(usage.router)
app.include_router(health.router)


# ============================================
# ✅ ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "InterviewAce API running"}
