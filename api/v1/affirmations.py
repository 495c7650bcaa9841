# api/v1/affirmations.py
from fastapi import APIRouter, Depends, Query
from typing import List, Literal
from uuid import UUID

from dependencies.auth import get_backend, get_current_session
from models.affirmation import AFFIRMATION_THEMES, Affirmation, AffirmationCreate, AffirmationTheme, FavoriteUpdate
from models.session import Session
from services.affirmations import AffirmationService
from services.backend import Backend

router = APIRouter(prefix="/affirmations", tags=["affirmations"])

@router.get("/themes", response_model=List[AffirmationTheme])
async def list_themes():
    return AFFIRMATION_THEMES

@router.get("", response_model=List[Affirmation])
async def list_affirmations(
    box: Literal["all", "sent", "received", "favorites"] = Query("all"),
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = AffirmationService(backend)
    if box == "sent":
        return await service.get_sent(session)
    if box == "received":
        return await service.get_received(session)
    if box == "favorites":
        return await service.get_favorites(session)
    return await service.get_all(session)

@router.post("", response_model=Affirmation, status_code=201)
async def create_affirmation(
    affirmation: AffirmationCreate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    """
    Send an affirmation to an account, or to an email address that may not
    have an account yet.
    """
    service = AffirmationService(backend)
    return await service.create(session, affirmation)

@router.post("/{affirmation_id}/read", response_model=Affirmation)
async def mark_as_read(
    affirmation_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = AffirmationService(backend)
    return await service.mark_as_read(session, affirmation_id)

@router.put("/{affirmation_id}/favorite", response_model=Affirmation)
async def set_favorite(
    affirmation_id: UUID,
    update: FavoriteUpdate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = AffirmationService(backend)
    return await service.toggle_favorite(session, affirmation_id, update.is_favorite)
