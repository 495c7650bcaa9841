# models/event.py
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID
from pydantic import BaseModel, Field

class Event(BaseModel):
    topic: str
    user_ids: List[UUID] = []
    data: Dict[str, Any] = {}
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
