"""Beanie document models and Pydantic schemas."""

from roommate_finder.models.user import Availability, Gender, ProfileFields, User

__all__ = ["User", "Gender", "Availability", "ProfileFields"]
