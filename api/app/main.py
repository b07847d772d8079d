# api/app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .crud import StoreUnavailable
from .db import Base, engine
from .logging_setup import setup_logging
from .services.league_codes import LeagueCodeExhausted
from .services.sheets import SheetsNotConfigured
from .settings import settings

# --- Routers ---
from .routers import auth as auth_router
from .routers import bets as bets_router
from .routers import billing as billing_router
from .routers import leagues as leagues_router
from .routers import matchups as matchups_router
from .routers import results as results_router
from .routers import sheets as sheets_router
from .routers import users as users_router

setup_logging()
log = logging.getLogger(__name__)

# --- App init ---
app = FastAPI(title="ClutchPicks API", version="1.0.0")

# --- CORS for the frontend ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error envelope: {"error": ..., "details": ...} ---
def _envelope(status_code: int, error, details=None, **extra) -> JSONResponse:
    body = {"error": error, "details": details}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        error = detail.pop("error", "Request failed")
        details = detail.pop("details", None)
        return _envelope(exc.status_code, error, details, **detail)
    return _envelope(exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return _envelope(400, "Invalid request", [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
    ])


@app.exception_handler(StoreUnavailable)
@app.exception_handler(LeagueCodeExhausted)
async def store_unavailable(request: Request, exc: Exception):
    log.error("%s %s: %s", request.method, request.url.path, exc)
    return _envelope(503, "Service temporarily unavailable", str(exc))


@app.exception_handler(SheetsNotConfigured)
async def sheets_not_configured(request: Request, exc: SheetsNotConfigured):
    return _envelope(503, "Google Sheets is not configured", str(exc))


@app.exception_handler(Exception)
async def unhandled(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _envelope(500, "Internal server error", "An unexpected error occurred")


# --- Health Check ---
@app.get("/health")
def health():
    """Lightweight health check."""
    return {"ok": True}


@app.get("/api/health")
def api_health():
    """Mirror endpoint for dashboard/API checks."""
    return {"ok": True, "env": settings.ENV}


# --- Startup ---
@app.on_event("startup")
def startup():
    # Only auto-create tables outside production; use Alembic there
    if settings.ENV != "production":
        Base.metadata.create_all(bind=engine)
    log.info("ClutchPicks API started (env=%s)", settings.ENV)


# --- Include routers ---
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(leagues_router.router)
app.include_router(sheets_router.router)
app.include_router(matchups_router.router)
app.include_router(bets_router.router)
app.include_router(results_router.router)
app.include_router(billing_router.router, prefix="/api")
