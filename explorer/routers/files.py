from __future__ import annotations

import os
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from ..deps import get_file_explorer
from ..schemas import DirectoryListing, FileSystemItem, SearchOutcome
from ..services.file_ops import FileExplorer
from ..services.results import Outcome, ResultType

router = APIRouter(prefix='/api/files', tags=['files'])

BROWSE_STATUSES = {ResultType.NOT_FOUND: 404, ResultType.UNAUTHORIZED: 400, ResultType.ERROR: 400}
DOWNLOAD_STATUSES = BROWSE_STATUSES
SEARCH_STATUSES = {ResultType.BAD_REQUEST: 400, ResultType.UNAUTHORIZED: 400, ResultType.ERROR: 400}
UPLOAD_STATUSES = {
    ResultType.NOT_FOUND: 404,
    ResultType.UNAUTHORIZED: 401,
    ResultType.BAD_REQUEST: 400,
    ResultType.ERROR: 500,
}


def _unwrap(outcome: Outcome, statuses: dict[ResultType, int]):
    if outcome.ok:
        return outcome.data
    raise HTTPException(
        status_code=statuses.get(outcome.type, 400),
        detail=outcome.error_message or 'Unknown error occurred',
    )


def _content_disposition(file_name: str) -> str:
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{file_name}"'


def _upload_length(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    length = file.file.tell()
    file.file.seek(0)
    return length


@router.get('/browse', response_model=DirectoryListing)
def browse(
    path: str = Query(default=''),
    sort_by: str = Query(default='name', pattern='^(name|size|date)$'),
    order: str = Query(default='asc', pattern='^(asc|desc)$'),
    explorer: FileExplorer = Depends(get_file_explorer),
):
    return _unwrap(explorer.browse(path, sort_by=sort_by, order=order), BROWSE_STATUSES)


@router.get('/download')
def download(path: str = Query(default=''), explorer: FileExplorer = Depends(get_file_explorer)):
    if not path.strip():
        raise HTTPException(status_code=400, detail='File path is required')

    handle = _unwrap(explorer.open_for_read(path), DOWNLOAD_STATUSES)
    headers = {
        'Content-Disposition': _content_disposition(handle.file_name),
    }
    return StreamingResponse(
        handle.iter_chunks(),
        media_type=handle.content_type,
        headers=headers,
        background=BackgroundTask(handle.close),
    )


@router.get('/search', response_model=SearchOutcome)
async def search(
    query: str = Query(default=''),
    path: str = Query(default=''),
    explorer: FileExplorer = Depends(get_file_explorer),
):
    return _unwrap(await explorer.search_async(query, path), SEARCH_STATUSES)


@router.post('/upload', response_model=FileSystemItem)
async def upload(
    path: str = Query(default=''),
    file: Optional[UploadFile] = File(default=None),
    explorer: FileExplorer = Depends(get_file_explorer),
):
    if file is None:
        raise HTTPException(status_code=400, detail='No file was uploaded')

    try:
        length = _upload_length(file)
        if length == 0:
            raise HTTPException(status_code=400, detail='No file was uploaded')
        outcome = await run_in_threadpool(explorer.upload, path, file.filename, file.file, length)
    finally:
        await file.close()
    return _unwrap(outcome, UPLOAD_STATUSES)
