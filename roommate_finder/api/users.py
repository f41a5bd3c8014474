"""
User APIs: registration, login, own profile, roommate search.

POST /register and /login are public; everything else requires a bearer token.
Handlers stay thin; services raise RoommateFinderError subclasses that main.py
turns into `{success: false, message}` responses.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel

from roommate_finder.api.auth import get_app_settings, get_current_user
from roommate_finder.config import Settings
from roommate_finder.models.user import User
from roommate_finder.services import auth_service, profile_service, roommate_service

router = APIRouter()


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
async def register(
    body: RegisterRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    user, token = await auth_service.register_user(settings, body.name, body.email, body.password)
    return {
        "success": True,
        "token": token,
        "user": {"id": str(user.id), "name": user.name, "email": user.email},
    }


# TODO: throttle repeated failed logins per email/IP; there is no lockout yet.
@router.post(
    "/login",
    summary="Log in and receive a token",
)
async def login(
    body: LoginRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    token = await auth_service.authenticate_user(settings, body.email, body.password)
    return {"success": True, "token": token}


@router.get(
    "/profile",
    summary="Get current user profile",
)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    return {"success": True, "data": profile_service.get_profile(current_user)}


@router.put(
    "/profile",
    summary="Update current user profile",
)
async def update_profile(
    current_user: Annotated[User, Depends(get_current_user)],
    payload: Annotated[Optional[Dict[str, Any]], Body()] = None,
) -> dict:
    """
    Accepts any subset of the editable fields. Unknown keys are ignored.
    """
    data = await profile_service.update_profile(current_user, payload or {})
    return {"success": True, "data": data}


@router.get(
    "/roommates",
    summary="Find roommates",
)
async def find_roommates(
    current_user: Annotated[User, Depends(get_current_user)],
    city: Optional[str] = None,
    gender: Optional[str] = None,
    budget_max: Annotated[Optional[str], Query(alias="budgetMax")] = None,
) -> dict:
    roommates = await roommate_service.find_roommates(
        current_user,
        city=city,
        gender=gender,
        budget_max=budget_max,
    )
    return {"success": True, "data": roommates}
