# models/session.py
from pydantic import BaseModel, UUID4
from typing import Optional

class Session(BaseModel):
    user_id: UUID4
    email: str
    access_token: Optional[str] = None
