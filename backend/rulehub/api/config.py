"""Configuration API endpoints."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from rulehub.config import get_config_dict, settings, update_config
from rulehub.generation.models import OutputFormat

router = APIRouter(prefix="/config")


class ConfigUpdate(BaseModel):
    """Config update request."""

    debug: bool | None = None

    # Generation settings
    package_expiry_days: int | None = Field(default=None, ge=1, le=90)
    default_output_format: OutputFormat | None = None

    # Storage settings
    storage_backend: str | None = Field(default=None, pattern="^(local|supabase|none)$")
    storage_url: str | None = Field(default=None, pattern="^(https?://.*)?$")
    storage_bucket: str | None = Field(default=None, min_length=1, max_length=100)
    public_base_url: str | None = Field(default=None, pattern="^https?://.*$")


@router.get("")
async def get_config() -> dict[str, Any]:
    """Get current configuration."""
    config = get_config_dict()
    config["storage_url"] = settings.storage_url
    config["storage_bucket"] = settings.storage_bucket
    config["public_base_url"] = settings.public_base_url
    return config


@router.put("")
async def set_config(update: ConfigUpdate) -> dict[str, Any]:
    """Update configuration."""
    updates = update.model_dump(exclude_none=True, mode="json")
    for key in ("storage_url", "public_base_url"):
        if key in updates:
            updates[key] = updates[key].rstrip("/")

    update_config(updates)
    return await get_config()
