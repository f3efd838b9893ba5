from __future__ import annotations

from fastapi import HTTPException, Request, status

from .services.file_ops import FileExplorer


def get_file_explorer(request: Request) -> FileExplorer:
    explorer = getattr(request.app.state, 'explorer', None)
    if explorer is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail='Service is starting')
    return explorer
