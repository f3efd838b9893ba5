from __future__ import annotations

import os
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ItemKind(str, Enum):
    DIRECTORY = 'directory'
    FILE = 'file'


# Fixed sort order for search results, independent of the enum values' spelling.
KIND_ORDER = {ItemKind.DIRECTORY: 0, ItemKind.FILE: 1}


class _ResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FileSystemItem(_ResponseModel):
    name: str
    path: str
    last_modified: datetime
    kind: ItemKind = Field(alias='type')
    size: Optional[int] = Field(default=None, ge=0)
    extension: Optional[str] = None

    @model_validator(mode='after')
    def _file_fields_only_on_files(self) -> FileSystemItem:
        is_file = self.kind is ItemKind.FILE
        if is_file != (self.size is not None) or is_file != (self.extension is not None):
            raise ValueError('size and extension are set only for files')
        if '..' in self.path.split('/'):
            raise ValueError('path must not contain parent segments')
        return self

    @classmethod
    def from_stat(cls, name: str, path: str, st: os.stat_result, is_dir: bool) -> FileSystemItem:
        modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
        if is_dir:
            return cls(name=name, path=path, last_modified=modified, kind=ItemKind.DIRECTORY)
        return cls(
            name=name,
            path=path,
            last_modified=modified,
            kind=ItemKind.FILE,
            size=st.st_size,
            extension=os.path.splitext(name)[1],
        )


class DirectoryListing(_ResponseModel):
    current_path: str
    parent_path: Optional[str]
    directories: list[FileSystemItem] = Field(default_factory=list)
    files: list[FileSystemItem] = Field(default_factory=list)

    @model_validator(mode='after')
    def _parent_only_below_root(self) -> DirectoryListing:
        if (self.parent_path is None) != (self.current_path == ''):
            raise ValueError('parent_path is null exactly at the root')
        return self


class SearchOutcome(_ResponseModel):
    query: str
    search_path: str
    results: list[FileSystemItem] = Field(default_factory=list)


class StatusResponse(_ResponseModel):
    status: str
    timestamp: datetime
