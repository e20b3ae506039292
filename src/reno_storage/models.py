from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel


class PhotoUpload(BaseModel):
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return (self.content_type or "").lower().startswith("image/")


class PhotoRecord(BaseModel):
    inspiration_id: str
    photo_url: str
    photo_order: int


def photo_rows(records: Iterable[PhotoRecord]) -> List[dict]:
    return [record.model_dump() for record in records]
