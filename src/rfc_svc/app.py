"""FastAPI application - RFC Workflow Service.

This service tracks schema-change RFCs in a hosted repository.
It does NOT apply schema changes - loads are handed to a schema store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import configure, router
from .api.models import ErrorResponse
from .backend import create_backend
from .backend.base import RepositoryBackend
from .config import Config
from .errors import ConfigurationError
from .workflow import HttpSchemaStore, LoggingSchemaStore, SchemaStore, WorkflowOrchestrator


logger = logging.getLogger(__name__)

MALFORMED_REQUEST_MESSAGE = "Malformed request received"

# Backends owned by the running app (closed at shutdown)
_backends: list[RepositoryBackend] = []
_orchestrator: WorkflowOrchestrator | None = None


def create_schema_store(config: Config) -> SchemaStore:
    """Build the schema store; without a URL, loads are only logged."""
    if config.schema_store.url:
        return HttpSchemaStore(config.schema_store.url, timeout=config.schema_store.timeout_seconds)
    logger.warning("No schema store URL configured, loads will only be logged")
    return LoggingSchemaStore()


def build_orchestrator(config: Config) -> tuple[WorkflowOrchestrator, list[RepositoryBackend]]:
    """
    Build the orchestrator and the backends it owns from config.

    Raises:
        ConfigurationError: If the repository or user token is missing
    """
    repository = config.require_repository()
    backend = create_backend(repository, config.credentials.require_token())
    backends = [backend]

    try:
        machine_token = config.credentials.require_machine_token()
    except ConfigurationError:
        logger.warning("No machine token configured, background work will use the user token")
        machine_backend = backend
    else:
        machine_backend = create_backend(repository, machine_token)
        backends.append(machine_backend)

    orchestrator = WorkflowOrchestrator(
        backend=backend,
        machine_backend=machine_backend,
        schema_store=create_schema_store(config),
        retry_count=config.mergeability.retry_count,
        wait_seconds=config.mergeability.wait_seconds,
    )
    return orchestrator, backends


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    global _orchestrator

    logger.info("Starting RFC workflow service...")

    config = Config.from_env()

    try:
        _orchestrator, backends = build_orchestrator(config)
    except ConfigurationError as e:
        # Keep serving /health; workflow routes report the configuration error
        logger.error(f"RFC workflow not configured: {e}")
        _orchestrator, backends = None, []

    _backends.extend(backends)
    configure(_orchestrator)

    logger.info(
        f"RFC workflow service started (repository: {config.repository.owner}/{config.repository.name})"
    )

    yield

    # Shutdown
    logger.info("Shutting down RFC workflow service...")

    if _orchestrator is not None:
        await _orchestrator.shutdown()

    for backend in _backends:
        await backend.close()
    _backends.clear()

    configure(None)
    _orchestrator = None

    logger.info("RFC workflow service stopped")


# Create FastAPI app
app = FastAPI(
    title="RFC Workflow Service",
    description="Submits, reviews, loads and merges schema-change RFCs tracked in a hosted repository.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=MALFORMED_REQUEST_MESSAGE).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
    )


def run():
    """Run the service with uvicorn."""
    import uvicorn

    config = Config.from_env()

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )

    uvicorn.run(
        "rfc_svc.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
