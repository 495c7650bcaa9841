# models/person.py
from pydantic import BaseModel, UUID4, EmailStr
from datetime import datetime
from typing import Literal, Optional

class PersonCreate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None

class PersonUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None

class Person(BaseModel):
    id: UUID4
    created_by: UUID4
    user_id: Optional[UUID4] = None
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class PersonWithConnection(Person):
    connection_status: Literal["pending", "accepted", "blocked", "no_connection"] = "no_connection"
