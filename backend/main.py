# main.py — Boardshare API
# Features:
# - Request correlation IDs
# - Security headers
# - Validation errors rendered as 400
# - Health check with DB verification
# - All routers registered

import os
import json
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from database import init_db, close_db, get_db_session

# Logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("boardshare")

APP_VERSION = "1.0.0"


def _check_startup_config():
    """Warn about configuration that is unsafe outside development."""
    warnings = []

    jwt_key = os.getenv("JWT_SECRET_KEY", "")
    if not jwt_key or len(jwt_key) < 32:
        warnings.append("JWT_SECRET_KEY is not set or too short; tokens are not safe to rely on")

    if not os.getenv("PUBLIC_APP_URL"):
        warnings.append("PUBLIC_APP_URL not set; share links will use the API host")

    for w in warnings:
        logger.warning(w)

    return len(warnings) == 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Boardshare v{APP_VERSION}...")
    await init_db()
    _check_startup_config()
    yield
    logger.info("Shutting down Boardshare...")
    await close_db()


app = FastAPI(
    title="Boardshare",
    description="Kanban workspaces with link sharing, shared tags, projects and versions",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(",")
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    correlation_id = request.headers.get("X-Correlation-ID", request_id)
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    # Share tokens live in the path of public reads; keep them out of the log
    path = request.url.path
    if path.startswith("/api/v1/public/workspaces/"):
        path = "/api/v1/public/workspaces/<token>"
    logger.info(
        f"{request.method} {path} → {response.status_code} "
        f"({duration:.3f}s) [rid={request_id[:8]}]"
    )
    return response


# ============================================================
# MIDDLEWARE: Security Headers
# ============================================================

@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Sanitise errors to ensure JSON serialisability
    errors = []
    for err in exc.errors():
        clean_err = {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
        }
        if "input" in err:
            try:
                json.dumps(err["input"])
                clean_err["input"] = err["input"]
            except (TypeError, ValueError):
                clean_err["input"] = str(err["input"])
        errors.append(clean_err)

    return JSONResponse(
        status_code=400,
        content={
            "detail": errors,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import auth, workspaces, stages, tasks, tags, projects, public

app.include_router(auth.router)
app.include_router(workspaces.router)
app.include_router(stages.router)
app.include_router(tasks.router)
app.include_router(tags.router)
app.include_router(projects.router)
app.include_router(public.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db_session)):
    """Health check with database connectivity verification"""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": APP_VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "database": db_status,
    }


@app.get("/")
async def root():
    return {
        "name": "Boardshare",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT") != "production",
    )
