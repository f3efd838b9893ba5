from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ..schemas import StatusResponse

router = APIRouter(prefix='/api', tags=['status'])


@router.get('/status', response_model=StatusResponse)
def get_status():
    return StatusResponse(status='App is running', timestamp=datetime.now(timezone.utc))
