# dependencies/auth.py
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from config.jwt import decode_token
from models.session import Session
from services.backend import Backend
from services.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Session:
    """Dependency that turns the Supabase access token into a Session"""
    if credentials is None:
        raise NotAuthenticated()

    payload = decode_token(credentials.credentials)
    if not payload:
        raise NotAuthenticated("Invalid authentication token")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise NotAuthenticated("Invalid token: no user ID or email found")

    try:
        return Session(user_id=user_id, email=email, access_token=credentials.credentials)
    except ValueError:
        raise NotAuthenticated("Invalid user ID format")

async def get_backend(session: Session = Depends(get_current_session)) -> Backend:
    """Backend gateway bound to the caller's session"""
    return Backend(session=session)

async def get_anonymous_backend() -> Backend:
    """Backend gateway for endpoints that run before a session exists"""
    return Backend()
