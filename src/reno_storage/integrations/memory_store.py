from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .base import UploadError


class InMemoryObjectStore:
    """In-process object store for local development and tests."""

    def __init__(self, base_url: str = "memory://inspiration-photos"):
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, Dict[str, Any]] = {}

    async def upload(
        self,
        key: str,
        content: bytes,
        content_type: str,
        *,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> None:
        if key in self.objects and not upsert:
            raise UploadError(f"Object {key} already exists")
        self.objects[key] = {
            "content": content,
            "content_type": content_type,
            "cache_control": cache_control,
        }

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            self.objects.pop(key, None)


class InMemoryRecordStore:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self._next_id = 1

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        stored = self.tables.setdefault(table, [])
        for row in rows:
            record = dict(row)
            record.setdefault("id", str(self._next_id))
            self._next_id += 1
            stored.append(record)

    async def delete_in(self, table: str, column: str, values: Sequence[str]) -> int:
        wanted = {str(v) for v in values}
        rows = self.tables.get(table, [])
        kept = [row for row in rows if str(row.get(column)) not in wanted]
        self.tables[table] = kept
        return len(rows) - len(kept)
