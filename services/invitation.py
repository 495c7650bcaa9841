# services/invitation.py
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlencode
from uuid import UUID
import logging

from config import settings
from models.connection import ConnectionStatus
from models.invitation import (
    Invitation,
    InvitationAcceptance,
    InvitationCreate,
    InvitationCreated,
    InvitationStatus
)
from models.person import PersonCreate
from models.session import Session
from services.affirmations import AffirmationService
from services.backend import Backend
from services.connections import ConnectionService
from services.email import EmailService
from services.events import EventBus, get_event_bus
from services.exceptions import AlreadyProcessed, AuthorizationError, BackendError, NotFound
from services.persons import PersonService
from services.profile import ProfileService

logger = logging.getLogger(__name__)


def build_share_url(inviter_id: UUID, invitee_email: Optional[str] = None, base_url: Optional[str] = None) -> str:
    """Sign-up link carrying the inviter and, when known, the invitee's email"""
    params = {"inviter": str(inviter_id)}
    if invitee_email:
        params["invitee"] = invitee_email
    return f"{(base_url or settings.APP_URL).rstrip('/')}/sign-up?{urlencode(params)}"


def default_share_message(inviter_name: str) -> str:
    return (
        f"Hi! {inviter_name} would love to share words of encouragement and appreciation "
        f"with you through Love on the Pixel. Join us in spreading love and positivity! \U0001F495"
    )


class InvitationService:
    table_name = "invitations"

    def __init__(
        self,
        backend: Backend,
        events: Optional[EventBus] = None,
        email_service: Optional[EmailService] = None
    ):
        self.backend = backend
        self.events = events or get_event_bus()
        self.connections = ConnectionService(backend, self.events)
        self.affirmations = AffirmationService(backend, self.events)
        self.persons = PersonService(backend, self.events)
        self.profiles = ProfileService(backend)
        self._email_service = email_service

    async def create_invitation(self, session: Session, invitation_data: InvitationCreate) -> InvitationCreated:
        """
        Invite someone by email.

        Duplicate pending invitations to the same address are not prevented.
        """
        inviter_name = await self.profiles.display_name(session)

        rows = self.backend.insert_rows(self.table_name, [{
            "inviter_id": session.user_id,
            "inviter_email": session.email,
            "inviter_name": inviter_name,
            "invitee_name": invitation_data.invitee_name,
            "invitee_email": invitation_data.invitee_email,
            "custom_message": invitation_data.custom_message,
            "status": InvitationStatus.PENDING
        }])
        if not rows:
            raise BackendError("Failed to create invitation")

        invitation = Invitation(**rows[0])
        logger.info(f"Invitation {invitation.id} created by {session.user_id}")

        share_url = build_share_url(session.user_id, invitation.invitee_email)
        share_text = invitation.custom_message or default_share_message(inviter_name)

        await self._add_invitee_to_persons(session, invitation)
        await self._send_invitation_email(invitation, inviter_name, share_url)

        self.events.publish("invitations", [session.user_id], {"action": "created", "id": str(invitation.id)})
        return InvitationCreated(invitation=invitation, share_url=share_url, share_text=share_text)

    async def get_invitation(self, invitation_id: UUID) -> Invitation:
        """Get a single invitation by ID"""
        rows = self.backend.query_rows(self.table_name, {"id": invitation_id}, limit=1)
        if not rows:
            raise NotFound("Invitation not found")
        return Invitation(**rows[0])

    async def get_sent_invitations(self, session: Session) -> List[Invitation]:
        rows = self.backend.query_rows(self.table_name, {"inviter_id": session.user_id}, order_by="created_at")
        return [Invitation(**row) for row in rows]

    async def get_pending_invitations(self, session: Session) -> List[Invitation]:
        """Invitations addressed to the caller's email that are still open"""
        rows = self.backend.query_rows(
            self.table_name,
            {"invitee_email": session.email, "status": InvitationStatus.PENDING},
            order_by="created_at"
        )
        return [Invitation(**row) for row in rows]

    async def accept_invitation(self, session: Session, invitation_id: UUID) -> InvitationAcceptance:
        """
        Accept an invitation addressed to the caller.

        The connection and the status flip are the critical path and their
        failures reach the caller. Delivering pending affirmations and linking
        person entries are best-effort.
        """
        logger.info(f"Accepting invitation {invitation_id} for {session.email}")
        invitation = await self._get_open_invitation(session, invitation_id)

        await self.connections.connect(invitation.inviter_id, session.user_id, ConnectionStatus.ACCEPTED)

        delivered = 0
        try:
            delivered = await self.affirmations.deliver_pending(session.user_id, session.email)
        except Exception as e:
            logger.error(f"Error delivering pending affirmations for {session.user_id}: {str(e)}")

        linked = 0
        try:
            linked = await self.persons.link_accounts(invitation.inviter_id, invitation.invitee_email, session.user_id)
        except Exception as e:
            logger.error(f"Error linking persons for invitation {invitation.id}: {str(e)}")

        now = datetime.now(timezone.utc)
        try:
            rows = self.backend.update_rows(
                self.table_name,
                {"id": invitation.id, "status": InvitationStatus.PENDING},
                {"status": InvitationStatus.ACCEPTED, "accepted_at": now, "updated_at": now}
            )
        except Exception as e:
            logger.error(f"Error updating invitation {invitation.id}: {str(e)}")
            raise
        if not rows:
            raise AlreadyProcessed("Invitation was processed concurrently")

        accepted = Invitation(**rows[0])
        logger.info(f"Invitation {accepted.id} accepted; {delivered} affirmation(s) delivered")

        self.events.publish(
            "invitations",
            [invitation.inviter_id, session.user_id],
            {"action": "accepted", "id": str(accepted.id)}
        )
        return InvitationAcceptance(invitation=accepted, delivered_affirmations=delivered, linked_persons=linked)

    async def decline_invitation(self, session: Session, invitation_id: UUID) -> Invitation:
        invitation = await self._get_open_invitation(session, invitation_id)

        rows = self.backend.update_rows(
            self.table_name,
            {"id": invitation.id, "status": InvitationStatus.PENDING},
            {"status": InvitationStatus.DECLINED, "updated_at": datetime.now(timezone.utc)}
        )
        if not rows:
            raise AlreadyProcessed("Invitation was processed concurrently")

        self.events.publish(
            "invitations",
            [invitation.inviter_id, session.user_id],
            {"action": "declined", "id": str(invitation.id)}
        )
        return Invitation(**rows[0])

    async def auto_accept_pending(self, session: Session) -> List[UUID]:
        """Accept every open invitation for the caller's email; failures are only logged"""
        try:
            pending = await self.get_pending_invitations(session)
        except Exception as e:
            logger.error(f"Error checking for pending invitations: {str(e)}")
            return []

        accepted = []
        for invitation in pending:
            try:
                await self.accept_invitation(session, invitation.id)
                accepted.append(invitation.id)
                logger.info(f"Auto-accepted invitation from {invitation.inviter_name or invitation.inviter_email}")
            except Exception as e:
                logger.error(f"Failed to auto-accept invitation {invitation.id}: {str(e)}")
        return accepted

    async def _get_open_invitation(self, session: Session, invitation_id: UUID) -> Invitation:
        invitation = await self.get_invitation(invitation_id)

        if invitation.invitee_email != session.email:
            logger.error(f"Email mismatch: {invitation.invitee_email} vs {session.email}")
            raise AuthorizationError("This invitation is not for you")

        if invitation.status != InvitationStatus.PENDING:
            raise AlreadyProcessed(f"Invitation already {invitation.status.value}")

        return invitation

    async def _add_invitee_to_persons(self, session: Session, invitation: Invitation):
        """Put the invitee on the inviter's persons list right away"""
        try:
            if await self.persons.find_by_email(session, invitation.invitee_email):
                return
            await self.persons.create_person(session, PersonCreate(
                name=invitation.invitee_name or invitation.invitee_email.split("@")[0],
                email=invitation.invitee_email
            ))
        except Exception as e:
            logger.error(f"Error adding invitee to persons: {str(e)}")

    async def _send_invitation_email(self, invitation: Invitation, inviter_name: str, share_url: str):
        if not settings.INVITATION_EMAILS_ENABLED and self._email_service is None:
            logger.debug(f"Invitation emails disabled; not emailing {invitation.invitee_email}")
            return

        try:
            email_service = self._email_service or EmailService()
            await email_service.send_invitation(
                to_email=invitation.invitee_email,
                inviter_name=inviter_name,
                share_url=share_url,
                invitee_name=invitation.invitee_name,
                custom_message=invitation.custom_message
            )
        except Exception as e:
            logger.error(f"Failed to send invitation email for {invitation.id}: {str(e)}")
