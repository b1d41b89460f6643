"""FastAPI entrypoint for the judge: routers, error rendering, metrics, worker lifecycle"""

import logging
import time
import traceback
import uuid
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from codearena.api.v1 import contests, submissions
from codearena.config import settings
from codearena.core.database import SessionLocal, init_db
from codearena.core.exceptions import BaseAPIException
from codearena.core.logging_setup import configure_logging
from codearena.schemas.response import ErrorResponse, HealthResponse
from codearena.services.submission_worker import submission_worker

configure_logging()
logger = logging.getLogger(__name__)

HTTP_REQUESTS = Counter(
    "codearena_http_requests_total",
    "HTTP requests served by the judge API",
    ["method", "path", "status"],
)
HTTP_LATENCY = Histogram(
    "codearena_http_request_duration_seconds",
    "Judge API request latency in seconds",
    ["method", "path"],
)
QUEUE_DEPTH = Gauge("codearena_submission_queue_depth", "Submissions still waiting for a verdict")
WORKER_UP = Gauge("codearena_worker_up", "1 while the embedded judging pool is running")

SLOW_REQUEST_SECONDS = 1.0

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def observe_request(request: Request, call_next):
    """Attach a request id and record count and latency per route"""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id

    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    path = request.url.path
    HTTP_REQUESTS.labels(request.method, path, str(response.status_code)).inc()
    HTTP_LATENCY.labels(request.method, path).observe(elapsed)
    if elapsed > SLOW_REQUEST_SECONDS:
        logger.warning("Slow request %s %s: %.2fs (request_id=%s)", request.method, path, elapsed, request_id)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _error_response(request: Request, status_code: int, message: str, details: Any = None) -> JSONResponse:
    payload = ErrorResponse(error=message, details=details, path=request.url.path)
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(BaseAPIException)
async def handle_api_error(request: Request, exc: BaseAPIException):
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(request, exc.status_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    fields = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.info("Rejected payload for %s: %s", request.url.path, fields)
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed", fields)


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s: %s\n%s", request.url.path, exc, traceback.format_exc())
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "A database error occurred. Please try again later.",
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.critical("Unhandled error on %s: %s\n%s", request.url.path, exc, traceback.format_exc())
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred.")


@app.on_event("startup")
async def on_startup():
    settings.validate_security_settings()
    logger.info("%s v%s starting (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    init_db()

    if settings.RUN_EMBEDDED_WORKER:
        submission_worker.start()
    else:
        logger.info("Embedded judging pool disabled; run run_worker.py separately")
    WORKER_UP.set(1 if submission_worker.is_running() else 0)


@app.on_event("shutdown")
async def on_shutdown():
    if submission_worker.is_running():
        submission_worker.stop()
    WORKER_UP.set(0)
    logger.info("%s stopped", settings.APP_NAME)


def _readiness() -> Dict[str, Any]:
    database: Dict[str, Any] = {"ok": True, "error": None}
    depth = 0
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        depth = submission_worker.queue_depth(db)
    except SQLAlchemyError as exc:
        database = {"ok": False, "error": str(exc)}
    finally:
        db.close()

    worker = submission_worker.status()
    QUEUE_DEPTH.set(depth)
    WORKER_UP.set(1 if worker["running"] else 0)
    return {"database": database, "worker": worker, "queue_depth": depth}


@app.get("/health", response_model=HealthResponse)
async def health():
    """Database reachability, judging pool liveness and queue depth"""
    readiness = _readiness()
    return HealthResponse(
        status="healthy" if readiness["database"]["ok"] else "degraded",
        version=settings.APP_VERSION,
        readiness=readiness,
    )


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(submissions.router, prefix="/api/v1/submissions", tags=["Submissions"])
app.include_router(contests.router, prefix="/api/v1/contests", tags=["Contests"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "codearena.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
    )
