"""
FastAPI Server for Circle Ledger
Serves the user / circle / sell endpoints
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from config.config import (
    AUTO_CREATE_TABLES,
    CORS_ORIGINS,
    ENVIRONMENT,
    HOST,
    PORT,
    validate_config,
)
from config.logging import setup_logging
from config.sentry import init_sentry
from ledger import __version__
from ledger.api.router import router as api_router
from ledger.core.exceptions import LedgerError, StorageError
from ledger.database.engine import Database
from ledger.services.ledger_service import LedgerService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events
    """
    logger.info("Starting Circle Ledger API Server...")
    ledger: LedgerService = app.state.ledger

    # NOTE: Database tables managed by Alembic migrations
    # Run: alembic upgrade head
    if AUTO_CREATE_TABLES:
        await ledger.database.create_tables()

    yield

    logger.info("Shutting down Circle Ledger API Server...")
    await ledger.database.dispose()


def create_app(ledger: Optional[LedgerService] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        ledger: Service to serve; built from config when omitted

    Returns:
        Configured FastAPI instance
    """
    if ledger is None:
        ledger = LedgerService(Database.from_config())

    app = FastAPI(
        title="Circle Ledger API",
        description="Bookkeeping for currency trading circles",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "service": "Circle Ledger API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health(request: Request):
        """
        Health check endpoint (includes database round-trip)
        """
        if await request.app.state.ledger.database.check_connection():
            return {"status": "healthy"}
        return JSONResponse(status_code=503, content={"status": "unhealthy"})

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        """
        Map ledger errors to their HTTP status

        StorageError details were already logged by the service.
        """
        if not isinstance(exc, StorageError):
            logger.warning(
                f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """
        Malformed body or path parameter -> 400
        """
        errors = exc.errors()
        first = errors[0] if errors else {}
        # loc starts with the source ("body", "path", "query")
        location = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"Invalid {location}: {first.get('msg')}" if location else "Invalid request"
        logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler for unexpected errors
        """
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


setup_logging()
init_sentry()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Validate configuration
    try:
        validate_config()
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(1)

    logger.info(f"Configuration validated successfully ({ENVIRONMENT})")

    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info",
    )
