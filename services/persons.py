# services/persons.py
import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from models.person import Person, PersonCreate, PersonUpdate, PersonWithConnection
from models.session import Session
from services.backend import Backend
from services.events import EventBus, get_event_bus
from services.exceptions import NotFound

logger = logging.getLogger(__name__)


class PersonService:
    table_name = "persons"

    def __init__(self, backend: Backend, events: Optional[EventBus] = None):
        self.backend = backend
        self.events = events or get_event_bus()

    async def list_persons(self, session: Session) -> List[PersonWithConnection]:
        """Persons created by the caller, annotated with the caller's edge status"""
        rows = self.backend.query_rows(self.table_name, {"created_by": session.user_id}, order_by="created_at")
        edges = self.backend.query_rows("user_connections", {"user_id": session.user_id})
        status_by_user = {str(edge["connected_user_id"]): edge["status"] for edge in edges}

        persons = []
        for row in rows:
            status = status_by_user.get(str(row.get("user_id")), "no_connection") if row.get("user_id") else "no_connection"
            persons.append(PersonWithConnection(**row, connection_status=status))
        return persons

    async def find_by_email(self, session: Session, email: str) -> Optional[Person]:
        rows = self.backend.query_rows(self.table_name, {"created_by": session.user_id, "email": email}, limit=1)
        return Person(**rows[0]) if rows else None

    async def create_person(self, session: Session, data: PersonCreate, user_id: Optional[UUID] = None) -> Person:
        rows = self.backend.insert_rows(self.table_name, [{
            "created_by": session.user_id,
            "user_id": user_id,
            **data.model_dump()
        }])
        person = Person(**rows[0])
        logger.info(f"Added person {person.id} for {session.user_id}")

        self.events.publish("persons", [session.user_id], {"action": "created", "id": str(person.id)})
        return person

    async def update_person(self, session: Session, person_id: UUID, data: PersonUpdate) -> Person:
        patch = data.model_dump(exclude_none=True)
        patch["updated_at"] = datetime.now(timezone.utc)

        rows = self.backend.update_rows(self.table_name, {"id": person_id, "created_by": session.user_id}, patch)
        if not rows:
            raise NotFound("Person not found")

        self.events.publish("persons", [session.user_id], {"action": "updated", "id": str(person_id)})
        return Person(**rows[0])

    async def delete_person(self, session: Session, person_id: UUID) -> None:
        rows = self.backend.delete_rows(self.table_name, {"id": person_id, "created_by": session.user_id})
        if not rows:
            raise NotFound("Person not found")

        self.events.publish("persons", [session.user_id], {"action": "deleted", "id": str(person_id)})

    async def link_accounts(self, inviter_id: UUID, invitee_email: str, invitee_id: UUID) -> int:
        """Attach the new account to the inviter's unclaimed person entries for that email"""
        rows = self.backend.update_rows(
            self.table_name,
            {"created_by": inviter_id, "email": invitee_email, "user_id": None},
            {"user_id": invitee_id, "updated_at": datetime.now(timezone.utc)}
        )
        if rows:
            logger.info(f"Linked {len(rows)} person(s) of {inviter_id} to account {invitee_id}")
            self.events.publish("persons", [inviter_id], {"action": "linked"})
        return len(rows)
