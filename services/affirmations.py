# services/affirmations.py
import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from models.affirmation import Affirmation, AffirmationCreate, AffirmationStatus
from models.session import Session
from services.backend import Backend
from services.events import EventBus, get_event_bus
from services.exceptions import BackendError, NotFound
from services.profile import ProfileService

logger = logging.getLogger(__name__)


class AffirmationService:
    table_name = "affirmations"

    def __init__(self, backend: Backend, events: Optional[EventBus] = None):
        self.backend = backend
        self.events = events or get_event_bus()
        self.profile_service = ProfileService(backend)

    async def create(self, session: Session, data: AffirmationCreate) -> Affirmation:
        """
        Send an affirmation.

        Addressed by account id it is delivered straight away. Addressed by
        email it is delivered when the email already belongs to an account,
        otherwise it is stored as pending until that person signs up.
        """
        recipient_id = data.recipient_id
        recipient_email = data.recipient_email

        if recipient_id is None:
            profile = await self.profile_service.get_profile_by_email(recipient_email)
            if profile:
                recipient_id = profile.id

        status = AffirmationStatus.DELIVERED if recipient_id else AffirmationStatus.PENDING

        rows = self.backend.insert_rows(self.table_name, [{
            "sender_id": session.user_id,
            "recipient_id": recipient_id,
            "recipient_email": recipient_email,
            "message": data.message,
            "category": data.category,
            "status": status,
            "is_favorite": False
        }])
        if not rows:
            raise BackendError("Failed to create affirmation")

        affirmation = Affirmation(**rows[0])
        logger.info(f"Affirmation {affirmation.id} created as {status.value}")

        notify = [session.user_id] + ([recipient_id] if recipient_id else [])
        self.events.publish("affirmations", notify, {"action": "created", "id": str(affirmation.id)})
        return affirmation

    async def deliver_pending(self, for_user_id: UUID, for_email: str) -> int:
        """
        Re-home affirmations that were addressed to an email before its owner
        had an account. Returns how many rows were delivered.

        Rows are handled one at a time; a failing row is logged and skipped.
        Only pending rows are selected, so calling this again is a no-op.
        """
        pending = self.backend.query_rows(self.table_name, {
            "recipient_id": None,
            "recipient_email": for_email,
            "status": AffirmationStatus.PENDING
        })

        if not pending:
            return 0

        delivered = 0
        for row in pending:
            try:
                updated = self.backend.update_rows(
                    self.table_name,
                    {"id": row["id"], "status": AffirmationStatus.PENDING},
                    {
                        "recipient_id": for_user_id,
                        "status": AffirmationStatus.DELIVERED,
                        "updated_at": datetime.now(timezone.utc)
                    }
                )
                if updated:
                    delivered += 1
                    logger.info(f"Delivered pending affirmation {row['id']} to {for_user_id}")
            except Exception as e:
                logger.error(f"Error delivering pending affirmation {row['id']}: {str(e)}")

        if delivered:
            self.events.publish("affirmations", [for_user_id], {"action": "delivered", "count": delivered})
        return delivered

    async def get_all(self, session: Session) -> List[Affirmation]:
        rows = self.backend.query_rows(
            self.table_name,
            either=[{"sender_id": session.user_id}, {"recipient_id": session.user_id}],
            order_by="created_at"
        )
        return [Affirmation(**row) for row in rows]

    async def get_sent(self, session: Session) -> List[Affirmation]:
        rows = self.backend.query_rows(self.table_name, {"sender_id": session.user_id}, order_by="created_at")
        return [Affirmation(**row) for row in rows]

    async def get_received(self, session: Session) -> List[Affirmation]:
        rows = self.backend.query_rows(self.table_name, {"recipient_id": session.user_id}, order_by="created_at")
        return [Affirmation(**row) for row in rows]

    async def get_favorites(self, session: Session) -> List[Affirmation]:
        rows = self.backend.query_rows(
            self.table_name,
            {"recipient_id": session.user_id, "is_favorite": True},
            order_by="created_at"
        )
        return [Affirmation(**row) for row in rows]

    async def mark_as_read(self, session: Session, affirmation_id: UUID) -> Affirmation:
        rows = self.backend.update_rows(
            self.table_name,
            {"id": affirmation_id, "recipient_id": session.user_id, "status": AffirmationStatus.DELIVERED},
            {"status": AffirmationStatus.READ, "updated_at": datetime.now(timezone.utc)}
        )
        if rows:
            self.events.publish("affirmations", [session.user_id], {"action": "read", "id": str(affirmation_id)})
            return Affirmation(**rows[0])

        # Nothing moved: either it is not ours or it was read already
        return await self._get_received(session, affirmation_id)

    async def toggle_favorite(self, session: Session, affirmation_id: UUID, is_favorite: bool) -> Affirmation:
        rows = self.backend.update_rows(
            self.table_name,
            {"id": affirmation_id, "recipient_id": session.user_id},
            {"is_favorite": is_favorite, "updated_at": datetime.now(timezone.utc)}
        )
        if not rows:
            raise NotFound("Affirmation not found")

        self.events.publish("affirmations", [session.user_id], {"action": "favorite", "id": str(affirmation_id)})
        return Affirmation(**rows[0])

    async def _get_received(self, session: Session, affirmation_id: UUID) -> Affirmation:
        rows = self.backend.query_rows(
            self.table_name,
            {"id": affirmation_id, "recipient_id": session.user_id},
            limit=1
        )
        if not rows:
            raise NotFound("Affirmation not found")
        return Affirmation(**rows[0])
