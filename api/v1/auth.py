# api/v1/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, EmailStr
from typing import Optional
import logging

from dependencies.auth import get_anonymous_backend, get_backend, get_current_session
from models.profile import UserProfileUpdate
from models.session import Session
from services.backend import Backend
from services.events import get_event_bus
from services.invitation import InvitationService
from services.profile import ProfileService

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None

class SessionResponse(BaseModel):
    user_id: str
    email: str
    access_token: Optional[str] = None
    token_type: str = "bearer"

def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        user_id=str(session.user_id),
        email=session.email,
        access_token=session.access_token
    )

@router.post("/signup")
async def signup(
    request: SignupRequest,
    background_tasks: BackgroundTasks,
    backend: Backend = Depends(get_anonymous_backend)
):
    """
    Register an account. When the provider returns a session right away the
    profile is created and any invitations waiting for this email are accepted
    in the background.
    """
    session = backend.sign_up(request.email, request.password, {"full_name": request.full_name})
    if session is None:
        return {
            "message": "Signup successful. Please check your email for confirmation link.",
            "email": request.email
        }

    await ProfileService(backend).upsert_profile(session, UserProfileUpdate(full_name=request.full_name))
    background_tasks.add_task(InvitationService(backend).auto_accept_pending, session)
    return _session_response(session)

@router.post("/login", response_model=SessionResponse)
async def login(
    request: LoginRequest,
    background_tasks: BackgroundTasks,
    backend: Backend = Depends(get_anonymous_backend)
):
    session = backend.sign_in_with_password(request.email, request.password)
    logger.info(f"User {session.user_id} signed in")

    # Auto-accept pending invitations when user logs in
    background_tasks.add_task(InvitationService(backend).auto_accept_pending, session)
    return _session_response(session)

@router.post("/logout", status_code=204)
async def logout(
    session: Session = Depends(get_current_session),
    backend: Backend = Depends(get_backend)
) -> None:
    backend.sign_out()
    get_event_bus().reset(owner=str(session.user_id))
    logger.info(f"User {session.user_id} signed out")
