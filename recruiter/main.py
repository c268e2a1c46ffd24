"""
AI Recruiter API.

Jobs, applications, resume screening and interview sessions are mounted
under ``/api``; health probes and the OpenAPI docs stay at the root.
Every failure leaves through the same envelope:
``{"success": false, "errors": [{"msg": ..., "code": ...}]}``.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import recruiter.models  # noqa: F401  registers tables with SQLAlchemy
from recruiter.core.config import settings
from recruiter.core.exceptions import AppException
from recruiter.core.limiter import limiter
from recruiter.core.logging import setup_logging
from recruiter.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from recruiter.database import SessionLocal, init_db
from recruiter.dependencies import get_session_registry
from recruiter.routers.api_router import api_router
from recruiter.services.session_registry import SessionRegistry, session_registry

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    # timers of unfinished interviews must not outlive the loop
    session_registry.close_all()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Job board, AI resume screening and voice-driven interviews",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Starlette runs the last-added middleware first: CORS, then correlation id, then access log
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)


def error_response(status_code: int, errors: List[Dict[str, Any]]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "errors": errors})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or "body",
            "msg": error["msg"],
            "code": "VALIDATION_ERROR",
        }
        for error in exc.errors()
    ]
    logger.warning(f"Rejected request to {request.url.path}: {len(errors)} invalid field(s)")
    return error_response(422, errors)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(
        f"{exc.error_code}: {exc.message}",
        extra={"path": request.url.path, "details": exc.details},
    )
    return error_response(exc.status_code, [{"msg": exc.message, "code": exc.error_code}])


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, [{"msg": message, "code": "HTTP_ERROR"}])


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return error_response(500, [{"msg": "An unexpected server error occurred.", "code": "INTERNAL_ERROR"}])


app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
def root():
    return {"message": f"{settings.app_name} API", "version": settings.version, "docs": "/docs"}


@app.get("/health", tags=["Health"])
def health_check(registry: SessionRegistry = Depends(get_session_registry)):
    """Liveness probe; also reports how many interviews are running in this process."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
        "live_interviews": len(registry),
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ready", "components": {"database": "connected"}}


@app.get("/liveness", tags=["Health"])
def liveness_check(registry: SessionRegistry = Depends(get_session_registry)):
    return health_check(registry)
