"""
Document Storage Service

Stores applicant document bytes in a Supabase Storage bucket and issues
time-limited signed download URLs.
"""

import asyncio
import logging
import re
from typing import Optional
from uuid import UUID, uuid4

from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from admissions_crm.config.settings import get_settings
from admissions_crm.infrastructure.exceptions import ConfigurationError, StorageError


logger = logging.getLogger(__name__)


def build_storage_path(tenant_id: UUID, lead_id: UUID, file_name: str) -> str:
    """Object key: {tenant_id}/{lead_id}/{uuid}-{sanitized file name}."""
    safe_name = re.sub(r"[^A-Za-z0-9._-]+", "_", file_name).strip("_") or "file"
    return f"{tenant_id}/{lead_id}/{uuid4().hex}-{safe_name}"


class StorageService:
    """
    Thin wrapper over Supabase Storage for the documents bucket.

    Uses the service-role key, so callers must enforce tenant access
    before handing over a path.
    """

    _client: Optional[Client] = None

    def __init__(self, bucket: Optional[str] = None, client: Optional[Client] = None):
        settings = get_settings()
        self._bucket = bucket or settings.documents_bucket
        self._signed_url_ttl = settings.storage_signed_url_ttl_seconds
        if client is not None:
            self._client = client

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def client(self) -> Client:
        """Get the Supabase client, creating it on first use."""
        if self._client is None:
            settings = get_settings()
            if not settings.supabase_url or not settings.supabase_service_role_key:
                raise ConfigurationError(
                    "Missing Supabase configuration",
                    missing_keys=["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]
                )
            options = ClientOptions(
                postgrest_client_timeout=10,
                storage_client_timeout=60,
            )
            self._client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key,
                options,
            )
        return self._client

    def _files(self):
        return self.client.storage.from_(self._bucket)

    async def upload(
        self,
        tenant_id: UUID,
        lead_id: UUID,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload a file and return its storage path.

        Raises:
            StorageError: If the upload fails
        """
        path = build_storage_path(tenant_id, lead_id, file_name)
        try:
            await asyncio.to_thread(
                self._files().upload,
                path,
                content,
                file_options={"content-type": content_type or "application/octet-stream"},
            )
        except Exception as e:
            logger.error(f"Upload failed for {path}: {e}")
            raise StorageError(
                "Failed to upload document",
                bucket=self._bucket,
                path=path,
                original_error=e
            )

        logger.info(f"Uploaded {len(content)} bytes to {self._bucket}/{path}")
        return path

    async def create_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        """
        Create a time-limited download URL for ``path``.

        Raises:
            StorageError: If the URL cannot be created
        """
        try:
            response = await asyncio.to_thread(
                self._files().create_signed_url,
                path,
                expires_in or self._signed_url_ttl,
            )
        except Exception as e:
            logger.error(f"Signed URL failed for {path}: {e}")
            raise StorageError(
                "Failed to create download URL",
                bucket=self._bucket,
                path=path,
                original_error=e
            )

        url = response.get("signedURL") or response.get("signedUrl")
        if not url:
            raise StorageError("Storage returned no signed URL", bucket=self._bucket, path=path)
        return url

    async def remove(self, path: str) -> None:
        """
        Delete the object at ``path``.

        Raises:
            StorageError: If deletion fails
        """
        try:
            await asyncio.to_thread(self._files().remove, [path])
        except Exception as e:
            logger.error(f"Delete failed for {path}: {e}")
            raise StorageError(
                "Failed to delete document",
                bucket=self._bucket,
                path=path,
                original_error=e
            )
        logger.info(f"Removed {self._bucket}/{path}")


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get the shared storage service (FastAPI dependency)."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
