from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class NameRequest(BaseModel):
    name: str


class StoragePathRequest(BaseModel):
    owner_id: str
    name: str
    index: int = Field(0, ge=0)


class CodePointOut(BaseModel):
    index: int
    character: str
    code_point: int
    code_point_hex: str
    is_visible: bool
    description: str


class InspectResponse(BaseModel):
    name: str
    length: int
    code_points: List[CodePointOut]
    problematic: int


class RemovePhotosRequest(BaseModel):
    photo_ids: List[str]
