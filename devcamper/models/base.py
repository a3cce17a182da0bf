# devcamper/models/base.py
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class DocumentInDB(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    created_at: Optional[datetime] = None


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None


def envelope(data: Any, msg: Optional[str] = None, **extra) -> Dict[str, Any]:
    """Standard success body: ``{success, msg?, count?, pagination?, data}``."""
    body: Dict[str, Any] = {"success": True}
    if msg is not None:
        body["msg"] = msg
    body.update(extra)
    body["data"] = data
    return body
