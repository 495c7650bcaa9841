# models/affirmation.py
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, EmailStr, UUID4, field_validator, model_validator

class AffirmationStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    READ = "read"

class AffirmationTheme(BaseModel):
    id: str
    name: str
    emoji: str
    color: str
    description: str

DEFAULT_THEME_COLOR = "#96ceb4"
DEFAULT_THEME_EMOJI = "\U0001F496"

AFFIRMATION_THEMES: List[AffirmationTheme] = [
    AffirmationTheme(id="love", name="Love", emoji="\U0001F495", color="#ff6b9d",
                     description="Expressions of deep love and affection"),
    AffirmationTheme(id="adoration", name="Adoration", emoji="\U0001F496", color="#ff8a80",
                     description="Worshipful admiration and devotion"),
    AffirmationTheme(id="affirmation", name="Affirmation", emoji="\U0001F4AA", color="#4ecdc4",
                     description="Supportive and encouraging messages"),
    AffirmationTheme(id="thanks", name="Thanks", emoji="\U0001F64F", color="#96ceb4",
                     description="Gratitude and appreciation"),
    AffirmationTheme(id="flirt", name="Flirt", emoji="\U0001F618", color="#ffb3ba",
                     description="Playful and romantic messages"),
    AffirmationTheme(id="appreciation", name="Appreciation", emoji="\U0001F496", color="#45b7d1",
                     description="Recognition of value and worth"),
    AffirmationTheme(id="unhinged", name="Unhinged", emoji="\U0001F92A", color="#ff9ff3",
                     description="Funny, random, and ridiculous notes"),
]

def get_theme_by_id(theme_id: str) -> Optional[AffirmationTheme]:
    return next((theme for theme in AFFIRMATION_THEMES if theme.id == theme_id), None)

def get_theme_color(theme_id: str) -> str:
    theme = get_theme_by_id(theme_id)
    return theme.color if theme else DEFAULT_THEME_COLOR

def get_theme_emoji(theme_id: str) -> str:
    theme = get_theme_by_id(theme_id)
    return theme.emoji if theme else DEFAULT_THEME_EMOJI

class AffirmationCreate(BaseModel):
    message: str
    category: str
    recipient_id: Optional[UUID4] = None
    recipient_email: Optional[EmailStr] = None

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message must not be empty")
        return value

    @field_validator("category")
    @classmethod
    def known_category(cls, value: str) -> str:
        if get_theme_by_id(value) is None:
            raise ValueError(f"unknown category '{value}'")
        return value

    @model_validator(mode="after")
    def one_recipient(self):
        if (self.recipient_id is None) == (self.recipient_email is None):
            raise ValueError("exactly one of recipient_id or recipient_email is required")
        return self

class Affirmation(BaseModel):
    id: UUID4
    sender_id: UUID4
    recipient_id: Optional[UUID4] = None
    recipient_email: Optional[str] = None
    message: str
    category: str
    status: AffirmationStatus
    is_favorite: bool = False
    created_at: datetime
    updated_at: datetime

class FavoriteUpdate(BaseModel):
    is_favorite: bool
