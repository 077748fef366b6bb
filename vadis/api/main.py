"""Main FastAPI application for Vadis."""

import json

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from vadis import __version__
from vadis.core.env_loader import ensure_env_loaded
ensure_env_loaded()

from vadis.core.exceptions import (
    CapabilityUnavailable,
    ConfigurationError,
    GenerationFailed,
    PersistenceError,
    PreconditionNotMet,
    ProjectNotFoundError,
    UnknownStageError,
    VadisError,
)
from vadis.core.logging_config import get_logger
from vadis.core.settings import get_settings
from vadis.api.dependencies import limiter
from vadis.api.routers import analysis, projects

logger = get_logger("api.main")

# Checked in order; the first matching class decides the status code
ERROR_STATUS_CODES = [
    (PreconditionNotMet, 400),
    (UnknownStageError, 400),
    (ProjectNotFoundError, 404),
    (CapabilityUnavailable, 503),
    (GenerationFailed, 502),
    (PersistenceError, 500),
    (ConfigurationError, 500),
]

settings = get_settings()

app = FastAPI(
    title="Vadis API",
    description="Screenplay analysis for film pre-production",
    version=__version__,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis.router, prefix="/api/script-analysis", tags=["script-analysis"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])


def status_code_for(error: VadisError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


@app.exception_handler(VadisError)
async def vadis_error_handler(request: Request, exc: VadisError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")

    body = {"error": exc.message}
    if exc.details:
        body["details"] = json.dumps(exc.details, default=str)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Vadis API", "version": __version__}


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def start_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Start the FastAPI server."""
    uvicorn.run(
        "vadis.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="warning",
    )


if __name__ == "__main__":
    start_server(settings.host, settings.port, settings.debug)
