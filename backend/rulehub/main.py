"""Rule Hub FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rulehub import __version__
from rulehub.api import api_router
from rulehub.api.models import HealthResponse
from rulehub.api.setup import limiter
from rulehub.catalog import load_rules_from_dir, seed_catalog
from rulehub.config import settings
from rulehub.database import close_db, init_db
from rulehub.generation.emitters import list_formats
from rulehub.logging_config import setup_logging
from rulehub.repositories import RuleRepository

setup_logging(debug=settings.debug, json_logs=not settings.debug)

logger = logging.getLogger(__name__)

UNLOGGED_PATHS = frozenset({"/health", "/api/health"})


async def import_catalog() -> None:
    """Seed the catalog from RULEHUB_CATALOG_DIR if it is set."""
    catalog_dir = settings.catalog_dir
    if not catalog_dir or not catalog_dir.exists():
        return
    rules = load_rules_from_dir(catalog_dir)
    created = await seed_catalog(RuleRepository(), rules)
    logger.info(f"Imported {created} of {len(rules)} rules from {catalog_dir}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await import_catalog()
    logger.info(f"{settings.app_name} {__version__} ready")

    yield

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database: {e}")
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Generate tailored AI-assistant rule packages: bash setup scripts, "
    "ZIP archives and JSON config bundles.",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "setup", "description": "Package generation from wizard answers"},
        {"name": "packages", "description": "Generated package lookup and download"},
        {"name": "rules", "description": "Rule catalog and rule dependencies"},
        {"name": "config", "description": "Runtime settings"},
    ],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with status and timing."""
    started = time.perf_counter()
    response = await call_next(request)

    if request.url.path not in UNLOGGED_PATHS:
        logger.info(
            "http_request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
    return response


app.include_router(api_router)


@app.get("/health", response_model=HealthResponse, tags=["health"])
@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health() -> HealthResponse:
    """Service status, catalog size and supported package formats."""
    return HealthResponse(
        status="ok",
        version=__version__,
        rules=await RuleRepository().count(),
        formats=list_formats(),
    )


@app.get("/")
async def root():
    return {"name": settings.app_name, "docs": "/docs", "api": "/api", "formats": list_formats()}


def main():
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run("rulehub.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
