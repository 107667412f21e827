"""Main entrypoint and application factory for the CNAB Store API.

This module initializes the FastAPI application, configures logging, creates the database tables, translates
errors into JSON responses carrying a trace id, and exposes the Scalar API reference endpoint for interactive
OpenAPI documentation. It also includes the main entrypoint for running the app with Uvicorn.
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import router
from app.core.db import Base, SessionLocal
from app.core.exceptions import CnabStoreError, InvalidUploadError, ValidationError
from app.core.settings import get_settings
from app.core.utils import ensure_dir, get_logger

CLIENT_ERRORS = (ValidationError, InvalidUploadError)

logger = get_logger("cnab-store")


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console, and ensure the log directory exists."""
    settings = get_settings()
    log_file = Path(settings.log_file)
    ensure_dir(log_file.parent)
    logger.setLevel(settings.log_level.upper())
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    for name in ("cnab-store.api", "cnab-store.importer", "cnab-store.parser", "cnab-store.db", "cnab-store.files"):
        child = get_logger(name)
        child.setLevel(settings.log_level.upper())
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler) and handler not in child.handlers:
                child.addHandler(handler)
    logger.propagate = False


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler to create the stores and transactions tables."""
    _ = app  # Silence unused argument warning
    engine = SessionLocal.kw["bind"]
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError:
        logger.exception("Failed to create stores or transactions tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="CNAB Store API",
    description="""
    The CNAB Store API imports fixed-width CNAB transaction files and reports the balance of every store found in them.

    **Endpoints:**
    - `POST /api/cnab/upload`: Upload a CNAB file. Returns imported and failed lines.
    - `GET /api/stores/summary`: Paginated store balances.
    - `GET /api/stores/{store_id}/transactions`: Operations imported for one store.
    - `GET /api/transaction-types`: Known transaction types.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


def _error_response(trace_id: str, status_code: int, error: str, details: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"traceId": trace_id, "statusCode": status_code, "error": error, "details": details},
    )


@app.exception_handler(CnabStoreError)
async def cnab_store_error_handler(request: Request, exc: CnabStoreError) -> JSONResponse:
    """Translate domain errors: bad input to 400, everything else to 500."""
    trace_id = uuid.uuid4().hex
    if isinstance(exc, CLIENT_ERRORS):
        logger.warning(f"Invalid request {request.method} {request.url.path} (traceId={trace_id}): {exc.message}")
        return _error_response(trace_id, 400, "Invalid request.", exc.message)
    logger.error(
        f"Request {request.method} {request.url.path} failed (traceId={trace_id}): {exc.message}", exc_info=exc
    )
    return _error_response(trace_id, 500, "Operation could not be completed.", exc.message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate any unhandled error into a 500 response with a trace id."""
    trace_id = uuid.uuid4().hex
    logger.error(f"Unhandled error on {request.method} {request.url.path} (traceId={trace_id})", exc_info=exc)
    return _error_response(trace_id, 500, "An unexpected error has occurred.", str(exc))


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> JSONResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
