"""Configuration management for Rule Hub."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Path for persisted settings
SETTINGS_FILE = Path("./data/settings.json")

OUTPUT_FORMATS = ("bash", "zip", "config")
STORAGE_BACKENDS = ("local", "supabase", "none")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="RULEHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Rule Hub"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/rulehub.db"

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path("./data"))
    catalog_dir: Path | None = None  # YAML rule files imported on startup

    # === Artifact Storage ===
    storage_backend: str = "local"  # local, supabase, none
    storage_url: str = ""  # Supabase project URL (e.g., https://xyz.supabase.co)
    storage_bucket: str = "rule-packages"
    storage_api_key: str | None = None
    public_base_url: str = "http://localhost:8000"  # Used for local download links

    # === Package Generation ===
    package_expiry_days: int = Field(default=7, ge=1, le=90)
    default_output_format: str = "zip"

    # Timeouts (seconds)
    http_timeout: int = 30  # 30 seconds for storage uploads

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_generate: str = "10/minute"  # Package generation endpoint limit
    rate_limit_default: str = "100/minute"  # Default limit for other endpoints

    @field_validator("storage_url", "public_base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/") if v else v

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Validate storage backend name."""
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"Storage backend must be one of: {', '.join(STORAGE_BACKENDS)}")
        return v

    @field_validator("default_output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """Validate default output format."""
        if v not in OUTPUT_FORMATS:
            raise ValueError(f"Output format must be one of: {', '.join(OUTPUT_FORMATS)}")
        return v

    @field_validator("rate_limit_generate", "rate_limit_default")
    @classmethod
    def validate_rate_limit(cls, v: str) -> str:
        """Validate rate limit format (e.g., '20/minute')."""
        if "/" not in v:
            raise ValueError("Rate limit must be in format 'N/period' (e.g., '20/minute')")
        return v

    @property
    def packages_dir(self) -> Path:
        """Directory where locally stored package artifacts live."""
        return self.data_dir / "packages"


settings = Settings()

# Settings that can be changed at runtime and survive restarts
PERSISTED_KEYS = (
    "debug",
    "storage_backend",
    "storage_url",
    "storage_bucket",
    "public_base_url",
    "package_expiry_days",
    "default_output_format",
)


def get_config_dict() -> dict[str, Any]:
    """Get config as dict for API responses."""
    return {
        "app_name": settings.app_name,
        "debug": settings.debug,
        "storage_backend": settings.storage_backend,
        "package_expiry_days": settings.package_expiry_days,
        "default_output_format": settings.default_output_format,
    }


def update_config(updates: dict[str, Any]) -> None:
    """Apply runtime config changes and persist them."""
    for key, value in updates.items():
        if key in Settings.model_fields:
            setattr(settings, key, value)
    save_settings()


def save_settings() -> None:
    """Write the persisted subset of settings to SETTINGS_FILE."""
    data = {}
    for key in PERSISTED_KEYS:
        value = getattr(settings, key)
        data[key] = str(value) if isinstance(value, Path) else value

    SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_FILE.write_text(json.dumps(data, indent=2))


def load_settings() -> None:
    """Apply persisted overrides, ignoring the file if it does not validate."""
    if not SETTINGS_FILE.exists():
        return

    try:
        stored = json.loads(SETTINGS_FILE.read_text())
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in settings file: {e}")
        return
    except OSError as e:
        logger.error(f"Could not read settings file: {e}")
        return

    overrides = {k: v for k, v in stored.items() if k in PERSISTED_KEYS and v is not None}
    try:
        validated = Settings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        logger.warning(f"Persisted settings are invalid, keeping current values: {e}")
        return

    for key in overrides:
        setattr(settings, key, getattr(validated, key))


def validate_critical_settings() -> None:
    """Log warnings for settings combinations that degrade the service."""
    if settings.storage_backend == "supabase" and not (settings.storage_url and settings.storage_api_key):
        logger.warning(
            "RULEHUB_STORAGE_BACKEND=supabase but storage URL or API key is missing - "
            "generated packages will have no download URL."
        )

    if settings.storage_backend == "none":
        logger.warning("Artifact storage is disabled - generated packages will have no download URL.")

    if settings.debug and settings.host == "0.0.0.0":
        logger.warning("Debug mode is on with a public host binding (0.0.0.0).")


load_settings()
validate_critical_settings()
