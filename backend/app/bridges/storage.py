"""
Evidence Storage Bridge

Resolves short-lived signed URLs for evidence files held in a
Supabase-Storage-compatible object store. Upload and deletion of the binary
itself happen client-side; this engine only stores metadata and asks the
store for read URLs when an inspection is fetched.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class StorageBridge:
    """Bridge to the object store holding evidence photos."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: str = "inspection-evidences",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key or "",
        }

    async def create_signed_url(self, storage_path: str, expires_in: int = 3600) -> Optional[str]:
        """Signed read URL for one object, or None when unavailable."""
        if not self.is_configured:
            return None

        path = quote(storage_path.lstrip("/"))
        url = f"{self.base_url}/storage/v1/object/sign/{self.bucket}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json={"expiresIn": expires_in}, headers=self._headers())
            if response.status_code != 200:
                logger.warning(f"[STORAGE] Sign failed for {storage_path}: {response.status_code} {response.text}")
                return None
            signed = response.json().get("signedURL")
            if not signed:
                return None
            if signed.startswith("http"):
                return signed
            return f"{self.base_url}/storage/v1{signed}"
        except httpx.HTTPError as e:
            logger.error(f"[STORAGE] Sign error for {storage_path}: {e}")
            return None


def get_storage_bridge() -> StorageBridge:
    return StorageBridge(
        base_url=settings.STORAGE_URL,
        service_key=settings.STORAGE_SERVICE_KEY,
        bucket=settings.EVIDENCE_BUCKET,
    )
