from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DEFAULT_IMAGE_URL = "default.jpg"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class EventType(str, Enum):
    GENERAL = "general"
    CONFERENCE = "conference"
    WORKSHOP = "workshop"
    SOCIAL = "social"
    OTHER = "other"


@dataclass
class User:
    id: int
    username: str
    password_hash: bytes = field(repr=False)
    password_salt: bytes = field(repr=False)
    role: Role = Role.USER
    created_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def public_view(self) -> dict:
        """Redacted view of the user; never carries the hash or salt."""
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "createdAt": self.created_at,
        }


@dataclass
class Event:
    id: int
    title: str
    description: str
    event_type: EventType
    created_by: int
    image_url: str = DEFAULT_IMAGE_URL
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> dict:
        """Return the event keyed by its wire field names."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "eventType": self.event_type.value,
            "imageUrl": self.image_url,
            "location": self.location,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
