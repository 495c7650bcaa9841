# services/connections.py
import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from models.connection import Connection, ConnectionStatus
from services.backend import Backend
from services.events import EventBus, get_event_bus
from services.exceptions import AuthorizationError, ConstraintViolation, NotFound

logger = logging.getLogger(__name__)


def both_directions(user_a: UUID, user_b: UUID) -> list:
    """Filter groups matching the A->B and B->A edges of one connection"""
    return [
        {"user_id": user_a, "connected_user_id": user_b},
        {"user_id": user_b, "connected_user_id": user_a},
    ]


class ConnectionService:
    table_name = "user_connections"

    def __init__(self, backend: Backend, events: Optional[EventBus] = None):
        self.backend = backend
        self.events = events or get_event_bus()

    async def connect(
        self,
        user_a: UUID,
        user_b: UUID,
        status: ConnectionStatus = ConnectionStatus.ACCEPTED
    ) -> None:
        """
        Create (or refresh) the two edges of a connection.

        Both inserts happen inside the create_bidirectional_connection
        procedure, so callers never observe a single edge. A blocked pair
        stays blocked.
        """
        if user_a == user_b:
            raise ConstraintViolation("Cannot connect a user to themselves")

        await self._refuse_if_blocked(user_a, user_b)

        logger.info(f"Connecting {user_a} <-> {user_b} ({ConnectionStatus(status).value})")
        try:
            self.backend.call_remote_procedure("create_bidirectional_connection", {
                "p_user_id": user_a,
                "p_connected_user_id": user_b,
                "p_status": ConnectionStatus(status)
            })
        except Exception as e:
            logger.error(f"Error creating bidirectional connection: {str(e)}")
            raise

        self.events.publish("connections", [user_a, user_b], {"action": "connected"})

    async def accept(self, user_id: UUID, connected_user_id: UUID) -> None:
        """Accept a pending connection on both edges"""
        existing = await self.get_edges(user_id, connected_user_id)
        if not existing:
            raise NotFound("Connection not found")
        if any(edge.status == ConnectionStatus.BLOCKED for edge in existing):
            raise AuthorizationError("Connection is blocked")

        try:
            self.backend.call_remote_procedure("accept_bidirectional_connection", {
                "p_user_id": user_id,
                "p_connected_user_id": connected_user_id
            })
        except Exception as e:
            logger.error(f"Error accepting bidirectional connection: {str(e)}")
            raise

        self.events.publish("connections", [user_id, connected_user_id], {"action": "accepted"})

    async def set_status(self, user_a: UUID, user_b: UUID, status: ConnectionStatus) -> List[Connection]:
        """Move both edges to the same status with one compound update"""
        rows = self.backend.update_rows(
            self.table_name,
            None,
            {"status": status, "updated_at": datetime.now(timezone.utc)},
            either=both_directions(user_a, user_b)
        )
        if not rows:
            raise NotFound("Connection not found")

        self.events.publish("connections", [user_a, user_b], {"action": ConnectionStatus(status).value})
        return [Connection.model_validate(row) for row in rows]

    async def disconnect(self, user_a: UUID, user_b: UUID) -> int:
        """Remove both edges in a single delete; returns the number of edges removed"""
        logger.info(f"Disconnecting {user_a} <-> {user_b}")
        try:
            rows = self.backend.delete_rows(self.table_name, either=both_directions(user_a, user_b))
        except Exception as e:
            logger.error(f"Error removing connection: {str(e)}")
            raise

        self.events.publish("connections", [user_a, user_b], {"action": "disconnected"})
        return len(rows)

    async def get_edges(self, user_a: UUID, user_b: UUID) -> List[Connection]:
        rows = self.backend.query_rows(self.table_name, either=both_directions(user_a, user_b))
        return [Connection.model_validate(row) for row in rows]

    async def list_connections(
        self,
        user_id: UUID,
        status: Optional[ConnectionStatus] = None
    ) -> List[Connection]:
        filters = {"status": status} if status else None
        rows = self.backend.query_rows(
            self.table_name,
            filters=filters,
            either=[{"user_id": user_id}, {"connected_user_id": user_id}],
            order_by="created_at"
        )
        return [Connection.model_validate(row) for row in rows]

    async def are_connected(self, user_a: UUID, user_b: UUID) -> bool:
        rows = self.backend.query_rows(self.table_name, either=both_directions(user_a, user_b), limit=1)
        return len(rows) > 0

    async def _refuse_if_blocked(self, user_a: UUID, user_b: UUID) -> None:
        edges = await self.get_edges(user_a, user_b)
        if any(edge.status == ConnectionStatus.BLOCKED for edge in edges):
            logger.warning(f"Refusing to reconnect blocked pair {user_a} <-> {user_b}")
            raise AuthorizationError("Connection is blocked")
