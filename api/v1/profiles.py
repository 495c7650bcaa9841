# api/v1/profiles.py
from fastapi import APIRouter, Depends, File, UploadFile
from uuid import UUID

from dependencies.auth import get_backend, get_current_session
from models.profile import UserProfile, UserProfileUpdate
from models.session import Session
from services.backend import Backend
from services.exceptions import NotFound
from services.profile import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])

@router.get("/me", response_model=UserProfile)
async def get_my_profile(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ProfileService(backend)
    profile = await service.get_profile(session.user_id)
    if not profile:
        raise NotFound("Profile not found")
    return profile

@router.put("/me", response_model=UserProfile)
async def upsert_my_profile(
    profile: UserProfileUpdate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ProfileService(backend)
    return await service.upsert_profile(session, profile)

@router.post("/me/photo", response_model=UserProfile)
async def upload_photo(
    file: UploadFile = File(...),
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    """Upload a profile photo and store its public URL on the profile"""
    service = ProfileService(backend)
    content = await file.read()
    public_url = await service.upload_photo(
        session,
        file.filename or "photo.jpg",
        content,
        file.content_type or "image/jpeg"
    )
    return await service.upsert_profile(session, UserProfileUpdate(photo_url=public_url))

@router.get("/{user_id}", response_model=UserProfile)
async def get_profile(
    user_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = ProfileService(backend)
    profile = await service.get_profile(user_id)
    if not profile:
        raise NotFound("Profile not found")
    return profile
