from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DirEntry(_CamelModel):
    path: str
    is_dir: bool
    mime_type: Optional[str] = None


class DirListing(_CamelModel):
    files: list[DirEntry] = Field(default_factory=list)
    parent_path: str
    depth: int = Field(ge=0)


class PathUpdates(BaseModel):
    path: str = Field(min_length=1)


class RenameRequest(BaseModel):
    path: str = Field(min_length=1)
    updates: PathUpdates
