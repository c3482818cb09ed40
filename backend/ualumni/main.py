"""FastAPI application entrypoint.

This module builds the UAlumni API application: logging, CORS, the
request-context middleware, error translation and the resource routers.
Routers are intentionally thin: they accept requests, delegate to
services, and wrap results in the `{statusCode, data}` envelope.

Resources:
- /alumni (+ /alumni/{email}/resume and its languages,
  higher-education-studies and ciap-courses)
- /alumni-to-verify
- /language, /career, /contract-type, /industry-of-interest, /technical-skill
- /ciap-course
- /job-offer
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import settings
from .database import create_db_and_tables, engine
from .errors import ServiceError, UnexpectedError
from .routers import api_router

logger = logging.getLogger("ualumni.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release pooled connections on shutdown."""
    create_db_and_tables()
    yield
    engine.dispose()


app = FastAPI(title="UAlumni API", version="1.0.0", lifespan=lifespan)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"statusCode": status_code, "message": message})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, UnexpectedError):
        logger.error(
            "service_failed %s",
            json.dumps(
                {
                    "request_id": getattr(request.state, "request_id", ""),
                    "path": request.url.path,
                    "cause": repr(exc.cause),
                },
                ensure_ascii=True,
            ),
        )
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return _error(400, "; ".join(problems) or "Bad request")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # logged by the request middleware; only the envelope is produced here
    return _error(500, UnexpectedError().message)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client": request.client.host if request.client else "unknown",
            },
            ensure_ascii=True,
        ),
    )
    return response


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


app.include_router(api_router)
