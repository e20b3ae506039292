from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence


class StorageError(RuntimeError):
    pass


class StorageConfigError(StorageError):
    pass


class UploadError(StorageError):
    """Raised when the object store rejects or fails an upload."""


class RecordStoreError(StorageError):
    pass


class ObjectStore(Protocol):
    async def upload(
        self,
        key: str,
        content: bytes,
        content_type: str,
        *,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> None: ...

    def get_public_url(self, key: str) -> str: ...

    async def remove(self, keys: Sequence[str]) -> None: ...


class RecordStore(Protocol):
    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> None: ...

    async def delete_in(self, table: str, column: str, values: Sequence[str]) -> int: ...
