from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..config import Settings, get_settings
from .base import RecordStoreError, StorageConfigError, StorageError, UploadError

logger = logging.getLogger(__name__)


@dataclass
class SupabaseClient:
    """Thin client for Supabase Storage (objects) and PostgREST (rows)."""

    url: Optional[str] = None
    service_key: Optional[str] = None
    bucket: Optional[str] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    _settings: Settings = field(default_factory=get_settings)

    def __post_init__(self) -> None:
        self.url = (self.url or self._settings.supabase.url or "").rstrip("/")
        self.service_key = self.service_key or self._settings.supabase.service_key
        self.bucket = self.bucket or self._settings.uploads.bucket
        if not (self.url and self.service_key):
            raise StorageConfigError(
                "Supabase url and service key must be configured via supabase__url / supabase__service_key."
            )

    # --- storage ----------------------------------------------------------
    async def upload(
        self,
        key: str,
        content: bytes,
        content_type: str,
        *,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> None:
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}/{_quote_key(key)}"
        headers = {
            **self._auth_headers(),
            "Content-Type": content_type or "application/octet-stream",
            "cache-control": f"max-age={cache_control}",
            "x-upsert": "true" if upsert else "false",
        }
        logger.debug("Uploading %s bytes to %s", len(content), endpoint)
        try:
            async with self._client() as client:
                response = await client.post(endpoint, content=content, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UploadError(
                f"Upload of {key} failed with {exc.response.status_code}: {_error_message(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UploadError(f"Upload of {key} failed: {exc}") from exc

    def get_public_url(self, key: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{_quote_key(key)}"

    async def remove(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}"
        try:
            async with self._client() as client:
                response = await client.request(
                    "DELETE", endpoint, json={"prefixes": list(keys)}, headers=self._auth_headers()
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"Removing {len(keys)} objects failed: {exc}") from exc

    # --- records ----------------------------------------------------------
    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        if not rows:
            return
        endpoint = f"{self.url}/rest/v1/{table}"
        headers = {**self._auth_headers(), "Prefer": "return=minimal"}
        try:
            async with self._client() as client:
                response = await client.post(endpoint, json=rows, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RecordStoreError(f"Insert into {table} failed: {exc}") from exc

    async def delete_in(self, table: str, column: str, values: Sequence[str]) -> int:
        if not values:
            return 0
        endpoint = f"{self.url}/rest/v1/{table}"
        params = {column: f"in.({','.join(str(v) for v in values)})"}
        headers = {**self._auth_headers(), "Prefer": "return=representation"}
        try:
            async with self._client() as client:
                response = await client.delete(endpoint, params=params, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RecordStoreError(f"Delete from {table} failed: {exc}") from exc
        try:
            deleted = response.json()
        except ValueError:
            return 0
        return len(deleted) if isinstance(deleted, list) else 0

    # --- internal helpers -------------------------------------------------
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.service_key}", "apikey": self.service_key or ""}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.supabase.timeout_seconds, transport=self.transport)


def _quote_key(key: str) -> str:
    # Dot segments are percent-encoded so the URL path is not normalized away
    # from the key.
    segments = []
    for segment in key.lstrip("/").split("/"):
        if segment in (".", ".."):
            segments.append(segment.replace(".", "%2E"))
        else:
            segments.append(quote(segment, safe=""))
    return "/".join(segments)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)
