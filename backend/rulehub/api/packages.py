"""Generated package lookup and download endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse, RedirectResponse, Response

from rulehub.api.models import PackageResponse
from rulehub.config import settings
from rulehub.repositories import PackageRepository
from rulehub.storage import CONTENT_TYPES, LocalArtifactStorage, package_file_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/packages")


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(package_id: str) -> PackageResponse:
    """Get a generated package descriptor."""
    package = await PackageRepository().get(package_id)
    if not package:
        raise HTTPException(status_code=404, detail=f"Package not found: {package_id}")
    return PackageResponse.from_package(package)


@router.get("/{package_id}/download")
async def download_package(package_id: str) -> Response:
    """Download a package artifact and count the download."""
    repository = PackageRepository()
    package = await repository.get(package_id)
    if not package:
        raise HTTPException(status_code=404, detail=f"Package not found: {package_id}")

    if package.expires_at <= datetime.now(timezone.utc):
        raise HTTPException(status_code=410, detail="Package has expired")

    local = LocalArtifactStorage(settings.packages_dir, settings.public_base_url)
    path = local.path_for(package.id, package.package_type)

    if path.exists():
        await repository.increment_download_count(package.id)
        logger.info(f"Serving package {package.id}", extra={"package_id": package.id})
        return FileResponse(
            path,
            media_type=CONTENT_TYPES.get(package.package_type, "application/octet-stream"),
            filename=f"rulehub-{package_file_name(package.id, package.package_type)}",
        )

    if package.download_url and "/api/packages/" not in package.download_url:
        await repository.increment_download_count(package.id)
        return RedirectResponse(package.download_url)

    raise HTTPException(status_code=404, detail="Package artifact is not available")
