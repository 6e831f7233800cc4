"""Setup wizard package generation endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from rulehub.api.models import GenerateRequest, GenerateResponse, PackageResponse
from rulehub.config import settings
from rulehub.generation import PackageGenerationError, RuleGenerationEngine
from rulehub.generation.emitters import list_formats
from rulehub.repositories import ConfigurationRepository, PackageRepository, RuleRepository
from rulehub.storage import create_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/setup")

# Shared limiter, installed on the app in main.py
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

SAMPLE_CONFIGURATION = {
    "stackChoices": {"react": True, "nextjs": True},
    "languageChoices": {"typescript": True, "javascript": False},
    "toolPreferences": {"eslint": True, "prettier": True, "husky": True},
    "environmentDetails": {
        "targetIde": "cursor",
        "nodeVersion": "18.0.0",
        "packageManager": "npm",
    },
    "outputFormat": "bash",
}


def get_engine() -> RuleGenerationEngine:
    """Build a generation engine wired to the database and configured storage."""
    try:
        storage = create_storage_service()
    except Exception as e:
        logger.warning(f"Artifact storage unavailable, packages will have no download URL: {e}")
        storage = None

    return RuleGenerationEngine(
        rules=RuleRepository(),
        configurations=ConfigurationRepository(),
        packages=PackageRepository(),
        storage=storage,
        expiry_days=settings.package_expiry_days,
    )


@router.post("/generate", response_model=GenerateResponse)
@limiter.limit(settings.rate_limit_generate)
async def generate_package(request: Request, body: GenerateRequest) -> GenerateResponse:
    """Generate a rule package from a wizard configuration."""
    config = body.to_configuration(settings.default_output_format)
    engine = get_engine()

    try:
        package = await engine.generate_package(config)
    except PackageGenerationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return GenerateResponse(success=True, package=PackageResponse.from_package(package))


@router.get("/generate")
async def generate_info() -> dict[str, Any]:
    """Describe the generation endpoint with a sample configuration."""
    return {
        "message": "Setup generation API is working",
        "formats": list_formats(),
        "testConfig": SAMPLE_CONFIGURATION,
        "endpoints": {
            "generate": "POST /api/setup/generate",
            "download": "GET /api/packages/{package_id}/download",
        },
    }
