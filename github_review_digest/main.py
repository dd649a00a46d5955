"""Main FastAPI application for GitHub Review Digest."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from github_review_digest import __version__
from github_review_digest.api.routes import router as api_router
from github_review_digest.config import get_settings
from github_review_digest.utils import get_logger
from github_review_digest.utils.database import check_database_connection, get_database_info

logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> None:
    """Application lifespan events."""
    logger.info("Starting GitHub Review Digest API")
    yield
    logger.info("Shutting down GitHub Review Digest API")


app = FastAPI(
    title="GitHub Review Digest",
    description="Condensed pull request review feedback and release contributor lists",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": __version__,
    }


@app.get("/cache-info")
def cache_info() -> dict[str, str | bool]:
    """Digest cache database info endpoint."""
    info = get_database_info()
    info["connected"] = check_database_connection()
    return info


@app.exception_handler(HTTPException)
async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(500)
async def internal_error_handler(_request: Request, _exc: Exception) -> JSONResponse:
    """500 error handler."""
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def run(host: str | None = None, port: int | None = None) -> None:
    """Serve the API with uvicorn."""
    uvicorn.run(
        "github_review_digest.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
