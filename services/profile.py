# services/profile.py
import os
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from config import settings
from models.profile import UserProfile, UserProfileUpdate
from models.session import Session
from services.backend import Backend
from services.exceptions import NotFound

logger = logging.getLogger(__name__)


class ProfileService:
    table_name = "user_profiles"

    def __init__(self, backend: Backend):
        self.backend = backend

    async def get_profile(self, user_id: UUID) -> Optional[UserProfile]:
        rows = self.backend.query_rows(self.table_name, {"id": user_id}, limit=1)
        return UserProfile(**rows[0]) if rows else None

    async def get_profile_by_email(self, email: str) -> Optional[UserProfile]:
        try:
            rows = self.backend.query_rows(self.table_name, {"email": email}, limit=1)
        except Exception as e:
            logger.error(f"Error fetching user profile by email: {str(e)}")
            return None
        return UserProfile(**rows[0]) if rows else None

    async def upsert_profile(self, session: Session, data: UserProfileUpdate) -> UserProfile:
        """Create the caller's profile, or update it if it already exists"""
        existing = await self.get_profile(session.user_id)
        if existing:
            return await self.update_profile(session, data)

        rows = self.backend.insert_rows(self.table_name, [{
            "id": session.user_id,
            "email": session.email,
            **data.model_dump(exclude_none=True)
        }])
        logger.info(f"Created profile for {session.user_id}")
        return UserProfile(**rows[0])

    async def update_profile(self, session: Session, data: UserProfileUpdate) -> UserProfile:
        patch = data.model_dump(exclude_none=True)
        patch["updated_at"] = datetime.now(timezone.utc)

        rows = self.backend.update_rows(self.table_name, {"id": session.user_id}, patch)
        if not rows:
            raise NotFound("Profile not found")
        return UserProfile(**rows[0])

    async def upload_photo(self, session: Session, filename: str, content: bytes, content_type: str) -> str:
        """Store a profile photo in the avatars bucket and return its public URL"""
        extension = os.path.splitext(filename)[1].lstrip(".") or "jpg"
        timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        path = f"profile-photos/{session.user_id}-{timestamp}.{extension}"

        public_url = self.backend.upload_file(settings.AVATAR_BUCKET, path, content, content_type)
        logger.info(f"Uploaded profile photo for {session.user_id} to {path}")
        return public_url

    async def display_name(self, session: Session) -> str:
        """Name shown to invitees: full name, then email, then a neutral fallback"""
        try:
            profile = await self.get_profile(session.user_id)
        except Exception as e:
            logger.error(f"Error fetching profile for display name: {str(e)}")
            profile = None

        if profile and profile.full_name:
            return profile.full_name
        return session.email or "A friend"
