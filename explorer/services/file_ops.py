from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..config import Settings
from .directory_lister import DirectoryLister
from .file_access import DEFAULT_MAX_UPLOAD_SIZE, FileAccessor
from .file_search import DEFAULT_RESULT_LIMIT, FileSearcher
from .path_resolver import PathResolver


@dataclass(frozen=True)
class ExplorerConfig:
    home_directory: Path
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    search_result_limit: int = DEFAULT_RESULT_LIMIT
    case_insensitive: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> ExplorerConfig:
        return cls(
            home_directory=Path(settings.home_directory),
            max_upload_size=settings.max_upload_file_size,
            search_result_limit=settings.search_result_limit,
            case_insensitive=settings.path_case_insensitive,
        )


class FileExplorer:
    """Browse, search, download and upload, all confined to one home directory."""

    def __init__(self, config: ExplorerConfig):
        self.config = config
        self.resolver = PathResolver(config.home_directory, case_insensitive=config.case_insensitive)
        self.lister = DirectoryLister(self.resolver)
        self.searcher = FileSearcher(self.resolver, limit=config.search_result_limit)
        self.accessor = FileAccessor(self.resolver, max_upload_size=config.max_upload_size)

    def browse(self, rel: str = '', sort_by: str = 'name', order: str = 'asc'):
        return self.lister.list(rel, sort_by=sort_by, order=order)

    async def search_async(self, query: str, rel: str = ''):
        return await self.searcher.search_async(query, rel)

    def open_for_read(self, rel: str):
        return self.accessor.open_for_read(rel)

    def upload(self, rel: str, file_name, source, declared_length: int):
        return self.accessor.write(rel, file_name, source, declared_length)
