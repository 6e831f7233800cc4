"""Artifact storage for generated packages.

Packages are stored either on the local filesystem (served back through the
download endpoint) or in a Supabase storage bucket over HTTP.
"""

import asyncio
import logging
from pathlib import Path

import httpx

from rulehub.config import settings
from rulehub.generation.errors import StorageError
from rulehub.generation.interfaces import ArtifactStorageProtocol
from rulehub.generation.models import UploadResult

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "bash": "sh",
    "zip": "zip",
    "config": "json",
}

CONTENT_TYPES = {
    "bash": "text/x-shellscript",
    "zip": "application/zip",
    "config": "application/json",
}


def package_file_name(package_id: str, package_type: str) -> str:
    """File name of a stored package artifact."""
    extension = EXTENSIONS.get(package_type, "bin")
    return f"{package_id}.{extension}"


class LocalArtifactStorage(ArtifactStorageProtocol):
    """Stores artifacts under a local directory."""

    def __init__(self, base_dir: Path, public_base_url: str) -> None:
        self.base_dir = base_dir
        self.public_base_url = public_base_url.rstrip("/")

    def path_for(self, package_id: str, package_type: str) -> Path:
        return self.base_dir / package_file_name(package_id, package_type)

    async def upload(self, package_id: str, data: bytes, package_type: str) -> UploadResult:
        path = self.path_for(package_id, package_type)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise StorageError(f"Could not write package {package_id}: {e}") from e

        logger.debug(f"Stored package {package_id} at {path}")
        return UploadResult(
            public_url=f"{self.public_base_url}/api/packages/{package_id}/download",
            path=str(path),
        )

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class SupabaseArtifactStorage(ArtifactStorageProtocol):
    """Stores artifacts in a Supabase storage bucket."""

    def __init__(
        self,
        base_url: str,
        bucket: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def upload(self, package_id: str, data: bytes, package_type: str) -> UploadResult:
        object_path = f"packages/{package_file_name(package_id, package_type)}"
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{object_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": CONTENT_TYPES.get(package_type, "application/octet-stream"),
            "x-upsert": "true",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Storage upload failed: {e}") from e

        if response.status_code >= 400:
            raise StorageError(f"Storage upload failed: {response.status_code} {response.text}")

        return UploadResult(
            public_url=f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_path}",
            path=object_path,
        )


def create_storage_service() -> ArtifactStorageProtocol:
    """Create the storage backend selected in settings."""
    backend = settings.storage_backend

    if backend == "local":
        return LocalArtifactStorage(settings.packages_dir, settings.public_base_url)

    if backend == "supabase":
        if not settings.storage_url or not settings.storage_api_key:
            raise StorageError("Supabase storage requires RULEHUB_STORAGE_URL and RULEHUB_STORAGE_API_KEY")
        return SupabaseArtifactStorage(
            base_url=settings.storage_url,
            bucket=settings.storage_bucket,
            api_key=settings.storage_api_key,
            timeout=settings.http_timeout,
        )

    raise StorageError(f"Artifact storage is disabled (backend={backend})")
