from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from ..schemas import KIND_ORDER, FileSystemItem, SearchOutcome
from .path_resolver import PathResolver
from .results import Outcome

logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 50


def _log_walk_error(exc: OSError) -> None:
    logger.warning('Skipping unreadable path during search: %s (%s)', exc.filename, exc.strerror)


class FileSearcher:
    """Recursive, case-insensitive name search below a resolved directory.

    Files and directories are capped independently at ``limit`` matches each,
    taken in traversal order. Traversal visits children in sorted order and does
    not descend into symlinked directories, so results are reproducible and stay
    under the root.
    """

    def __init__(self, resolver: PathResolver, limit: int = DEFAULT_RESULT_LIMIT):
        self.resolver = resolver
        self.limit = limit

    def search(
        self,
        query: str,
        relative_search_path: str = '',
        cancel_event: Optional[threading.Event] = None,
    ) -> Outcome[SearchOutcome]:
        if not query or not query.strip():
            return Outcome.bad_request('Search query cannot be empty')

        resolved = self.resolver.resolve(relative_search_path)
        if not resolved.ok:
            return resolved.cast()

        try:
            logger.info("Searching for '%s' in directory: '%s'", query, resolved.data)
            results = self._collect(query, resolved.data, cancel_event)
            logger.info('Search found %d results', len(results))
        except Exception:
            logger.error('Error performing search: %s in path: %s', query, relative_search_path, exc_info=True)
            return Outcome.error('Error performing search')

        return Outcome.success(
            SearchOutcome(query=query, search_path=relative_search_path or '', results=results)
        )

    async def search_async(self, query: str, relative_search_path: str = '') -> Outcome[SearchOutcome]:
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(self.search, query, relative_search_path, cancel_event)
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    def _collect(self, query: str, top: Path, cancel_event: Optional[threading.Event]) -> list[FileSystemItem]:
        if not os.path.isdir(top):
            logger.warning('Search directory does not exist: %s', top)
            return []

        # only * and ? are wildcards; brackets match literally
        pattern = '*' + query.casefold().replace('[', '[[]') + '*'
        files: list[FileSystemItem] = []
        directories: list[FileSystemItem] = []

        for dirpath, dirnames, filenames in os.walk(top, onerror=_log_walk_error):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Search for '%s' cancelled", query)
                break
            dirnames.sort()
            filenames.sort()

            if len(directories) < self.limit:
                for name in dirnames:
                    if fnmatch.fnmatchcase(name.casefold(), pattern):
                        item = self._item(dirpath, name, is_dir=True)
                        if item is not None:
                            directories.append(item)
                        if len(directories) >= self.limit:
                            break

            if len(files) < self.limit:
                for name in filenames:
                    if fnmatch.fnmatchcase(name.casefold(), pattern):
                        item = self._item(dirpath, name, is_dir=False)
                        if item is not None:
                            files.append(item)
                        if len(files) >= self.limit:
                            break

            if len(files) >= self.limit and len(directories) >= self.limit:
                break

        results = files + directories
        results.sort(key=lambda item: (KIND_ORDER[item.kind], item.name))
        return results

    def _item(self, dirpath: str, name: str, is_dir: bool) -> Optional[FileSystemItem]:
        full = os.path.join(dirpath, name)
        try:
            st = os.stat(full)
        except OSError as exc:
            if not os.path.islink(full):
                _log_walk_error(exc)
                return None
            # dangling or looping symlink
            try:
                st = os.lstat(full)
            except OSError as exc:
                _log_walk_error(exc)
                return None
        return FileSystemItem.from_stat(name, self.resolver.relative_to_root(full), st, is_dir)
