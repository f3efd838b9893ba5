from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

from ..config import MIB
from ..schemas import FileSystemItem
from .path_resolver import PathResolver
from .results import Outcome

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_SIZE = 10 * MIB
COPY_CHUNK_SIZE = MIB
DOWNLOAD_CHUNK_SIZE = 64 * 1024

CONTENT_TYPES = {
    '.txt': 'text/plain',
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.csv': 'text/csv',
    '.json': 'application/json',
    '.xml': 'application/xml',
    '.zip': 'application/zip',
}
DEFAULT_CONTENT_TYPE = 'application/octet-stream'

if os.name == 'nt':
    _INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
else:
    _INVALID_NAME_CHARS = re.compile(r'[/\x00]')


def content_type_for(file_name: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(file_name)[1].lower(), DEFAULT_CONTENT_TYPE)


def has_invalid_name_characters(file_name: str) -> bool:
    return file_name in {'.', '..'} or bool(_INVALID_NAME_CHARS.search(file_name))


class UploadTooLarge(Exception):
    pass


@dataclass
class DownloadHandle:
    stream: BinaryIO
    content_type: str
    file_name: str
    size: int

    def iter_chunks(self, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
        try:
            while chunk := self.stream.read(chunk_size):
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self.stream.close()


class FileAccessor:
    def __init__(self, resolver: PathResolver, max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE):
        self.resolver = resolver
        self.max_upload_size = max_upload_size

    def open_for_read(self, relative_path: str) -> Outcome[DownloadHandle]:
        resolved = self.resolver.resolve(relative_path)
        if not resolved.ok:
            return resolved.cast()
        target = resolved.data

        logger.info("Downloading file: '%s'", relative_path)
        try:
            if not target.is_file():
                logger.warning("File not found: '%s'", target)
                return Outcome.not_found(f'File not found: {relative_path}')
            stream = target.open('rb')
            size = os.fstat(stream.fileno()).st_size
        except PermissionError:
            logger.warning('Access denied to file: %s', relative_path, exc_info=True)
            return Outcome.unauthorized('Access denied to the specified file')
        except OSError:
            logger.error('Error downloading file: %s', relative_path, exc_info=True)
            return Outcome.error('Error accessing file')

        return Outcome.success(DownloadHandle(stream, content_type_for(target.name), target.name, size))

    def write(
        self,
        relative_dir_path: str,
        file_name: Optional[str],
        source: BinaryIO,
        declared_length: int,
    ) -> Outcome[FileSystemItem]:
        logger.info("Uploading file: '%s' to path: '%s'", file_name, relative_dir_path)

        if not file_name or not file_name.strip():
            return Outcome.bad_request('File name cannot be empty')
        if has_invalid_name_characters(file_name):
            return Outcome.bad_request('File name contains invalid characters')

        if declared_length > self.max_upload_size:
            return Outcome.bad_request(
                f'File size exceeds maximum allowed size of {self.max_upload_size // MIB}MB'
            )

        resolved = self.resolver.resolve(relative_dir_path)
        if not resolved.ok:
            return resolved.cast()
        target_dir = resolved.data

        try:
            if not target_dir.is_dir():
                logger.warning("Target directory does not exist: '%s'", target_dir)
                return Outcome.not_found(f'Directory not found: {relative_dir_path}')

            target = target_dir / file_name
            if os.path.lexists(target):
                return Outcome.bad_request(f"File '{file_name}' already exists in this directory")

            if not self.resolver.contains(target):
                logger.warning('Upload target escapes home directory: %s', target)
                return Outcome.unauthorized('Invalid file path')

            try:
                dest = target.open('xb')
            except FileExistsError:
                # lost a race with a concurrent upload of the same name
                return Outcome.bad_request(f"File '{file_name}' already exists in this directory")
        except PermissionError:
            logger.warning('Access denied during file upload: %s to %s', file_name, relative_dir_path, exc_info=True)
            return Outcome.unauthorized('Access denied to the specified directory')
        except OSError:
            logger.error('IO error during file upload: %s to %s', file_name, relative_dir_path, exc_info=True)
            return Outcome.error('Error writing file to disk')

        try:
            with dest:
                self._copy(source, dest)
                dest.flush()
                os.fsync(dest.fileno())
        except UploadTooLarge:
            self._discard(target)
            return Outcome.bad_request(
                f'File size exceeds maximum allowed size of {self.max_upload_size // MIB}MB'
            )
        except PermissionError:
            self._discard(target)
            logger.warning('Access denied during file upload: %s to %s', file_name, relative_dir_path, exc_info=True)
            return Outcome.unauthorized('Access denied to the specified directory')
        except Exception:
            self._discard(target)
            logger.error('IO error during file upload: %s to %s', file_name, relative_dir_path, exc_info=True)
            return Outcome.error('Error writing file to disk')

        logger.info("File uploaded successfully: '%s'", target)
        try:
            item = FileSystemItem.from_stat(target.name, self.resolver.relative_to_root(target), target.stat(), False)
        except OSError:
            logger.error('Uploaded file vanished before it could be described: %s', target, exc_info=True)
            return Outcome.error('Error uploading file')
        return Outcome.success(item)

    def _copy(self, source: BinaryIO, dest: BinaryIO) -> None:
        written = 0
        while chunk := source.read(COPY_CHUNK_SIZE):
            written += len(chunk)
            if written > self.max_upload_size:
                raise UploadTooLarge()
            dest.write(chunk)

    def _discard(self, target: os.PathLike) -> None:
        try:
            os.unlink(target)
        except FileNotFoundError:
            pass
        except OSError:
            logger.error('Could not remove partial upload: %s', target, exc_info=True)
