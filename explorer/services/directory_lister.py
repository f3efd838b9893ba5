from __future__ import annotations

import logging
import os
import posixpath

from ..schemas import DirectoryListing, FileSystemItem
from .path_resolver import PathResolver
from .results import Outcome

logger = logging.getLogger(__name__)

SORT_KEYS = {
    'name': lambda item: (item.name.lower(), item.name),
    'size': lambda item: (item.size or 0, item.name),
    'date': lambda item: (item.last_modified, item.name),
}


def stat_entry(entry: os.DirEntry) -> tuple[os.stat_result, bool]:
    """Stat a directory entry, falling back to the link itself for dangling or looping symlinks."""
    try:
        return entry.stat(), entry.is_dir()
    except OSError:
        if not entry.is_symlink():
            raise
        return entry.stat(follow_symlinks=False), False


class DirectoryLister:
    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    def list(self, relative_path: str = '', sort_by: str = 'name', order: str = 'asc') -> Outcome[DirectoryListing]:
        resolved = self.resolver.resolve(relative_path)
        if not resolved.ok:
            return resolved.cast()
        target = resolved.data

        try:
            if not target.is_dir():
                logger.warning('Directory not found: %s', target)
                return Outcome.not_found(f'Directory not found: {relative_path}')

            current = self.resolver.normalize_relative(relative_path, target)
            directories: list[FileSystemItem] = []
            files: list[FileSystemItem] = []
            with os.scandir(target) as entries:
                for entry in entries:
                    st, is_dir = stat_entry(entry)
                    child = f'{current}/{entry.name}' if current else entry.name
                    item = FileSystemItem.from_stat(entry.name, child, st, is_dir)
                    (directories if is_dir else files).append(item)
        except PermissionError:
            logger.warning('Access denied to directory: %s', relative_path, exc_info=True)
            return Outcome.unauthorized('Access denied to the specified directory')
        except OSError:
            logger.error('Error browsing directory: %s', relative_path, exc_info=True)
            return Outcome.error('Error accessing directory')

        key = SORT_KEYS.get(sort_by, SORT_KEYS['name'])
        reverse = order == 'desc'
        directories.sort(key=key, reverse=reverse)
        files.sort(key=key, reverse=reverse)

        return Outcome.success(
            DirectoryListing(
                current_path=current,
                parent_path=posixpath.dirname(current) if current else None,
                directories=directories,
                files=files,
            )
        )
