from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from .broker import AppEventType, event_log

router = APIRouter(prefix="/events", tags=["events"])


class AppEventRead(BaseModel):
    id: int
    type: AppEventType
    at: datetime
    details: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


@router.get("", response_model=List[AppEventRead])
def list_events(limit: Optional[int] = Query(None, ge=1)):
    return event_log.list(limit=limit)
