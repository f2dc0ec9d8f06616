"""
Object storage infrastructure

Supabase Storage REST client. Recordings are stored privately; the only
way to read one back is a time-limited signed URL.
"""

import os
import time
import uuid
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import settings
from app.core.errors import ConfigurationError, StorageError
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class UploadResult:
    path: str
    url: str
    size: int
    content_type: str


def build_recording_path(owner_id: str, original_name: Optional[str]) -> str:
    """users/{owner_id}/meetings/{timestamp_ms}_{uuid}{ext}"""
    extension = os.path.splitext(original_name or "")[1].lower() or ".webm"
    return f"users/{owner_id}/meetings/{int(time.time() * 1000)}_{uuid.uuid4()}{extension}"


class StorageClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.supabase_url or "").rstrip("/")
        self.service_key = service_key or settings.supabase_service_role_key
        self.bucket = bucket or settings.storage_bucket
        self.timeout = timeout if timeout is not None else settings.storage_timeout_seconds
        self._transport = transport

    @property
    def _storage_url(self) -> str:
        return f"{self.base_url}/storage/v1"

    def _headers(self, **extra: str) -> dict:
        if not self.base_url or not self.service_key:
            raise ConfigurationError("Object storage is not configured")
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            **extra,
        }

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Storage request failed: {method} {url}: {e}")
            raise StorageError(f"Storage request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Storage returned {response.status_code} for {method} {url}: {response.text}")
            raise StorageError(
                f"Storage returned {response.status_code}", details={"body": response.text[:500]}
            )
        return response

    async def upload(
        self,
        data: bytes,
        owner_id: str,
        original_name: Optional[str] = None,
        content_type: str = "audio/webm",
    ) -> UploadResult:
        """Upload a recording under the owner's prefix. Never overwrites."""
        path = build_recording_path(owner_id, original_name)
        await self._request(
            "POST",
            f"{self._storage_url}/object/{self.bucket}/{path}",
            content=data,
            headers=self._headers(
                **{"Content-Type": content_type, "Cache-Control": "3600", "x-upsert": "false"}
            ),
        )
        logger.info(f"Uploaded {len(data)} bytes to {path}")
        return UploadResult(
            path=path,
            url=f"{self._storage_url}/object/authenticated/{self.bucket}/{path}",
            size=len(data),
            content_type=content_type,
        )

    async def sign_url(self, path: str, ttl_seconds: Optional[int] = None) -> str:
        """Issue a fresh signed URL; every call produces a new URL for the same object"""
        ttl = ttl_seconds or settings.signed_url_ttl_seconds
        response = await self._request(
            "POST",
            f"{self._storage_url}/object/sign/{self.bucket}/{path}",
            json={"expiresIn": ttl},
            headers=self._headers(),
        )
        signed = response.json().get("signedURL") or response.json().get("signedUrl")
        if not signed:
            raise StorageError("Storage did not return a signed URL")
        if signed.startswith("http"):
            return signed
        return f"{self._storage_url}{signed}"

    async def delete(self, path: str) -> bool:
        await self._request(
            "DELETE",
            f"{self._storage_url}/object/{self.bucket}",
            json={"prefixes": [path]},
            headers=self._headers(),
        )
        return True


storage_client = StorageClient()


def get_storage() -> StorageClient:
    """Dependency returning the shared storage client"""
    return storage_client
