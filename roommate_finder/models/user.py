"""
User model for MongoDB (Beanie ODM).

The sole entity: credentials plus the roommate profile. The password hash is
stored under `password_hash` and never leaves the service layer.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field

MAX_TEXT_LENGTH = 500
MAX_INTERESTS = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Availability(str, Enum):
    """Roommate-seeking status."""

    LOOKING = "looking"
    MATCHED = "matched"
    NOT_LOOKING = "not-looking"


class ProfileFields(BaseModel):
    """
    Constraints on the editable profile attributes.

    Used to re-validate a normalized partial update before it is persisted;
    every field is optional so only the changed ones are checked.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    age: Optional[int] = Field(default=None, ge=18, le=80)
    city: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    bio: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    preferences: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    availability: Optional[Availability] = None
    interests: Optional[List[str]] = Field(default=None, max_length=MAX_INTERESTS)


class User(Document):
    """
    User document. id is MongoDB ObjectId; email is stored lowercase and unique.
    """

    name: str = Field(min_length=1)
    email: Indexed(str, unique=True)
    password_hash: str

    phone: str = ""
    gender: Optional[Gender] = None
    age: Optional[int] = Field(default=None, ge=18, le=80)
    city: str = ""
    budget: Optional[float] = Field(default=None, ge=0)
    bio: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    preferences: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    availability: Availability = Availability.LOOKING
    interests: List[str] = Field(default_factory=list, max_length=MAX_INTERESTS)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"
        use_state_management = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jamie Rivera",
                "email": "jamie@example.com",
                "city": "Austin",
                "budget": 900,
                "availability": "looking",
                "interests": ["Yoga", "Cooking"],
            }
        }
