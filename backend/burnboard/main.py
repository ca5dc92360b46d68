"""
Burnboard API v1.0
FastAPI backend for retainer burn-rate monitoring: month-to-date burn metrics
per client, overserving analytics and n8n/Accelo webhook ingestion over
async PostgreSQL.
"""
import os
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

load_dotenv()

from burnboard.db import init_db
from burnboard.services.logging_config import setup_logging
from burnboard.services.middleware import RequestTimingMiddleware

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("burnboard-api")

if not os.getenv("DATABASE_URL"):
    logger.warning("MISSING env var: DATABASE_URL — running in dev mode")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
    except Exception as e:
        logger.warning(f"Table init warning (OK if tables are managed externally): {e}")
    yield


app = FastAPI(
    title="Burnboard API",
    version="1.0.0",
    description="Client retainer burn-rate monitoring and overserving analytics",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ---------------------------------------------------------------------------
# CORS: allowed origins from env
# ---------------------------------------------------------------------------
_cors_default = "http://localhost:5173,http://localhost:3000"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers
from burnboard.api.clients_routes import router as clients_router
from burnboard.api.dashboard_routes import router as dashboard_router
from burnboard.api.department_routes import router as department_router
from burnboard.api.settings_routes import router as settings_router
from burnboard.api.webhook_routes import router as webhook_router

app.include_router(clients_router)
app.include_router(department_router)
app.include_router(dashboard_router)
app.include_router(settings_router)
app.include_router(webhook_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": "1.0.0",
        "db_configured": bool(os.getenv("DATABASE_URL")),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("burnboard.main:app", host="0.0.0.0", port=8000, reload=True)
