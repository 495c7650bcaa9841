# models/connection.py
from datetime import datetime
from enum import Enum
from typing import Literal
from pydantic import BaseModel, UUID4, ConfigDict

class ConnectionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"

class ConnectionCreate(BaseModel):
    connected_user_id: UUID4
    # Requests only; acceptance goes through the accept endpoint or an invitation
    status: Literal["pending"] = "pending"

class Connection(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    user_id: UUID4
    connected_user_id: UUID4
    status: ConnectionStatus
    created_at: datetime
    updated_at: datetime
