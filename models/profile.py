# models/profile.py
from pydantic import BaseModel, UUID4
from datetime import datetime
from typing import Optional

class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    photo_url: Optional[str] = None

class UserProfile(UserProfileUpdate):
    id: UUID4
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime
