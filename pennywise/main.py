"""
FastAPI application entry point.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pennywise.config import settings
from pennywise.api.router import api_router
from pennywise.database import init_db
from pennywise.errors import (
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    PennywiseError,
    ValidationError,
)
from pennywise.logging_config import setup_logging
from pennywise.services.exchange_rate_service import build_rate_service


logger = setup_logging()

ERROR_STATUS_CODES = [
    (ValidationError, 400),
    (NotAuthenticatedError, 401),
    (NotAuthorizedError, 403),
    (NotFoundError, 404),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    rate_service = build_rate_service()
    rate_service.load_cached_rates()
    app.state.rate_service = rate_service

    # Startup refresh runs in the background so a slow source can't delay serving
    refresh_task = None
    if settings.refresh_rates_on_startup:
        refresh_task = asyncio.create_task(rate_service.refresh_rates())

    logger.info(f"{settings.app_name} started with base currency {rate_service.base_currency}")
    yield

    if refresh_task is not None and not refresh_task.done():
        refresh_task.cancel()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Personal finance backend: recurring expenses and multi-currency display",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PennywiseError)
async def pennywise_error_handler(request: Request, exc: PennywiseError):
    status_code = next(
        (code for error_class, code in ERROR_STATUS_CODES if isinstance(exc, error_class)),
        500
    )
    if status_code == 500:
        logger.error(f"Unhandled application error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/api/v1/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "app_name": settings.app_name
    }


def run():
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("pennywise.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
