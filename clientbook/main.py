# clientbook/main.py
from dotenv import load_dotenv

# Load .env BEFORE anything reads settings
load_dotenv()

import logging

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# SlowAPI (Rate Limiting)
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .api import health as health_api
from .api.clients import main as clients_main_api
from .core.config import settings

# FastAPI Users imports
from .core.users import auth_backend_jwt, fastapi_users, resolve_user_from_token
from .core.websockets import manager
from .db.engine import create_db_and_tables
from .reminders.sessions import reminder_sessions
from .schemas.user import UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)

app = FastAPI(title="Clientbook", version="1.0.0")


# --- Database Initialization ---
@app.on_event("startup")
async def on_startup():
    """Initialize database tables on application startup"""
    await create_db_and_tables()
    logger.info("Database tables initialized")


@app.on_event("shutdown")
async def on_shutdown():
    await reminder_sessions.stop_all()


# --- SlowAPI configuration ---
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app.state.limiter = limiter


async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        content={"error": f"Rate limit exceeded: {exc.detail}"}, status_code=429
    )


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)


# ============================================================================
# --- SECURITY: CORS ---
# ============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# --- SECURITY: TRUSTED HOSTS ---
# ============================================================================
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.hosts)


# ============================================================================
# --- SECURITY: HTTP HEADERS ---
# ============================================================================
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.app_env == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


# ============================================================================
# --- GLOBAL EXCEPTION HANDLER ---
# ============================================================================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ============================================================================
# --- WEBSOCKET: REMINDERS ---
# ============================================================================
@app.websocket("/ws/reminders")
async def websocket_reminders(websocket: WebSocket, token: str | None = Query(None)):
    """
    Reminder push channel. While at least one socket of a user is open,
    a ReminderScheduler runs for that user and pushes "reminder" events here.
    """
    user = await resolve_user_from_token(token)
    if user is None:
        logger.warning("[WebSocket] Rejected: missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(user.id, websocket)
    acquired = False
    try:
        await reminder_sessions.acquire(user.id, token)
        acquired = True
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user.id, websocket)
        if acquired:
            await reminder_sessions.release(user.id)


# ============================================================================
# --- ROUTERS INCLUSION ---
# ============================================================================

# 1. FastAPI Users Routers
app.include_router(
    fastapi_users.get_auth_router(auth_backend_jwt),
    prefix="/auth/jwt",
    tags=["FastAPI Users - JWT Auth"],
)
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/auth",
    tags=["FastAPI Users - Registration"],
)
app.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["FastAPI Users - Users Management"],
)

# 2. Domain API Routers
app.include_router(clients_main_api.router, prefix="/api", tags=["Clients"])

# 3. System
app.include_router(health_api.router)
app.include_router(health_api.router, prefix="/api")
