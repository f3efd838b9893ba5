from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path, PurePath
from typing import Optional, Union

from .results import Outcome

logger = logging.getLogger(__name__)

OUTSIDE_HOME_MESSAGE = 'Access outside home directory is not allowed'


class PathResolver:
    """Resolves user supplied root-relative paths and proves they stay under the root.

    This is the only place containment is decided. Paths are canonicalized with
    ``os.path.realpath`` before the check, so ``..`` segments and symlinks are
    resolved first and a symlink pointing outside the root is rejected.
    """

    def __init__(self, root: Union[str, Path], case_insensitive: bool = False):
        self.root = Path(os.path.realpath(root))
        self.case_insensitive = case_insensitive

    def resolve(self, relative_path: Optional[str]) -> Outcome[Path]:
        if not relative_path:
            return Outcome.success(self.root)

        try:
            candidate = Path(os.path.realpath(os.path.join(self.root, relative_path.lstrip('/'))))
        except ValueError:
            # embedded NUL byte
            logger.warning('Rejected malformed path: %r', relative_path)
            return Outcome.unauthorized('Invalid path')

        if not self.contains(candidate):
            logger.warning('Rejected path outside home directory: %r', relative_path)
            return Outcome.unauthorized(OUTSIDE_HOME_MESSAGE)
        return Outcome.success(candidate)

    def contains(self, path: Union[str, Path]) -> bool:
        root = str(self.root)
        candidate = os.path.realpath(path)
        if candidate == root or candidate.startswith(root.rstrip(os.sep) + os.sep):
            return True
        if not self.case_insensitive:
            return False

        # A case-only match must name the root itself, not a sibling spelled alike.
        depth = len(self.root.parts)
        parts = PurePath(candidate).parts
        if len(parts) < depth:
            return False
        if [p.casefold() for p in parts[:depth]] != [p.casefold() for p in self.root.parts]:
            return False
        try:
            return os.path.samefile(os.path.join(*parts[:depth]), root)
        except OSError:
            return False

    def relative_to_root(self, path: Union[str, Path]) -> str:
        """Forward-slash path below the root; ``path`` must already be contained."""
        parts = PurePath(os.path.abspath(path)).parts[len(self.root.parts):]
        return '/'.join(parts)

    def normalize_relative(self, relative_path: Optional[str], resolved: Path) -> str:
        """Root-relative display form of ``relative_path`` with forward slashes.

        Lexical normalization keeps the caller's spelling (including symlinked
        directory names); if a ``..`` survives it, the canonical form is used.
        """
        if not relative_path:
            return ''
        normalized = posixpath.normpath(PurePath(relative_path).as_posix()).lstrip('/')
        if normalized == '.':
            return ''
        if normalized == '..' or normalized.startswith('../') or '/../' in normalized:
            return self.relative_to_root(resolved)
        return normalized
