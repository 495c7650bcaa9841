# api/v1/invitations.py
from fastapi import APIRouter, Depends
from typing import List
from uuid import UUID
import logging

from dependencies.auth import get_backend, get_current_session
from models.invitation import Invitation, InvitationAcceptance, InvitationCreate, InvitationCreated
from models.session import Session
from services.backend import Backend
from services.invitation import InvitationService

router = APIRouter(prefix="/invitations", tags=["invitations"])
logger = logging.getLogger(__name__)

@router.post("", response_model=InvitationCreated, status_code=201)
async def create_invitation(
    invitation: InvitationCreate,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    """Invite someone by email and get a link to share with them"""
    service = InvitationService(backend)
    return await service.create_invitation(session, invitation)

@router.get("/sent", response_model=List[Invitation])
async def get_sent_invitations(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = InvitationService(backend)
    return await service.get_sent_invitations(session)

@router.get("/pending", response_model=List[Invitation])
async def get_pending_invitations(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    """Invitations addressed to the authenticated user's email"""
    service = InvitationService(backend)
    return await service.get_pending_invitations(session)

@router.post("/auto-accept", response_model=List[UUID])
async def auto_accept_invitations(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = InvitationService(backend)
    return await service.auto_accept_pending(session)

@router.post("/{invitation_id}/accept", response_model=InvitationAcceptance)
async def accept_invitation(
    invitation_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = InvitationService(backend)
    return await service.accept_invitation(session, invitation_id)

@router.post("/{invitation_id}/decline", response_model=Invitation)
async def decline_invitation(
    invitation_id: UUID,
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
):
    service = InvitationService(backend)
    return await service.decline_invitation(session, invitation_id)
