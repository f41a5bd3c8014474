"""
Profile projection and partial-update normalization.

`normalize_profile_update` is pure: it turns an arbitrary client payload into the
set of field changes to persist, applying the per-field rules below. Fields not
present in the payload are never touched.

    name, phone, city, bio, preferences  trimmed; empty name is rejected
    gender                               falsy -> null
    availability                         unknown value ignored; falsy -> "looking"
    age, budget                          "" or null clears; unparseable ignored
    interests                            list or comma-separated string, max 10
"""

import logging
import math
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from roommate_finder.exceptions import InternalError, ValidationError
from roommate_finder.models.user import MAX_INTERESTS, Availability, ProfileFields, User, utcnow

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "phone", "city", "bio", "preferences")
NUMERIC_FIELDS = ("age", "budget")
EDITABLE_FIELDS = TEXT_FIELDS + ("gender", "availability", "interests") + NUMERIC_FIELDS
AVAILABILITY_VALUES = {a.value for a in Availability}


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a JSON value to a finite number the way a form field would be read.
    Returns None when the value does not represent a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def normalize_interests(value: Any) -> Optional[List[str]]:
    """List or comma-separated string -> trimmed, non-empty, first 10 entries."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [item if isinstance(item, str) else str(item) for item in value if item is not None]
    else:
        return None
    return [item.strip() for item in items if item.strip()][:MAX_INTERESTS]


def _text(field: str, value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"{field} must be a string")


def normalize_profile_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the field changes for a sparse update payload.

    Raises ValidationError when nothing recognised is left to change or the
    name would become empty. Entity constraints are checked separately.
    """
    updates: Dict[str, Any] = {}

    for field in EDITABLE_FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        if isinstance(value, str):
            value = value.strip()

        if field in NUMERIC_FIELDS:
            if value is None or value == "":
                updates[field] = None
                continue
            number = to_number(value)
            if number is not None:
                updates[field] = number
            continue

        if value is None:
            continue

        if field in TEXT_FIELDS:
            updates[field] = _text(field, value)
        elif field == "gender":
            updates[field] = value or None
        elif field == "availability":
            if value and (not isinstance(value, str) or value not in AVAILABILITY_VALUES):
                continue
            updates[field] = value or Availability.LOOKING.value
        elif field == "interests":
            if not value:
                updates[field] = []
                continue
            interests = normalize_interests(value)
            if interests is not None:
                updates[field] = interests

    if not updates:
        raise ValidationError("No updates provided")
    if updates.get("name") == "":
        raise ValidationError("Name cannot be empty")
    return updates


def validate_profile_changes(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Check changes against the entity constraints; returns typed values."""
    try:
        checked = ProfileFields.model_validate(updates)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or "profile"
        raise ValidationError(f"{field}: {error.get('msg', 'invalid value')}")
    return {field: getattr(checked, field) for field in updates}


def _serialize_number(value: Optional[float]):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def serialize_profile(user: User) -> Dict[str, Any]:
    """JSON-safe projection of a user record. Never includes the password hash."""
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "phone": user.phone or "",
        "gender": user.gender.value if user.gender else None,
        "age": user.age,
        "city": user.city or "",
        "budget": _serialize_number(user.budget),
        "bio": user.bio or "",
        "preferences": user.preferences or "",
        "availability": user.availability.value,
        "interests": list(user.interests or []),
        "updatedAt": user.updated_at,
        "createdAt": user.created_at,
    }


def get_profile(user: User) -> Dict[str, Any]:
    return serialize_profile(user)


async def update_profile(user: User, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply a normalized, validated partial update to the caller's own record and
    return the full serialized profile. Only changed fields are written.
    """
    changes = validate_profile_changes(normalize_profile_update(payload))

    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = utcnow()

    try:
        await user.save_changes()
    except PyMongoError as e:
        logger.exception("Failed to update profile for user %s", user.id)
        raise InternalError() from e

    logger.info("Updated profile for user %s (fields=%s)", user.id, sorted(changes))
    return serialize_profile(user)
