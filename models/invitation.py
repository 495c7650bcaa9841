# models/invitation.py
from pydantic import BaseModel, EmailStr, UUID4
from datetime import datetime
from typing import Optional
from enum import Enum

class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"

class InvitationCreate(BaseModel):
    invitee_name: str
    invitee_email: EmailStr
    custom_message: Optional[str] = None

class Invitation(BaseModel):
    id: UUID4
    inviter_id: UUID4
    inviter_email: str
    inviter_name: Optional[str] = None
    # Kept as a plain string: acceptance compares it verbatim with the session email
    invitee_email: str
    invitee_name: Optional[str] = None
    status: InvitationStatus
    custom_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None

class InvitationCreated(BaseModel):
    invitation: Invitation
    share_url: str
    share_text: str

class InvitationAcceptance(BaseModel):
    invitation: Invitation
    delivered_affirmations: int = 0
    linked_persons: int = 0
