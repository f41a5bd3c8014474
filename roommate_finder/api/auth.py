"""
Authentication dependencies: settings lookup and bearer-token verification.

Tokens are HS256 JWTs issued by this service at register/login. The resolved
user (password hash included on the model, never serialized) is handed to the
route as `current_user`.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roommate_finder.config import Settings
from roommate_finder.models.user import User
from roommate_finder.services.auth_service import resolve_token_user


# auto_error=False: missing/malformed headers become our own 401 body
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings instance the app was created with."""
    return request.app.state.settings


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> User:
    """
    Dependency: validate the bearer token and return the matching User.
    Raises AuthError (401) when the token is missing, invalid, expired or
    refers to a user that no longer exists.
    """
    token = credentials.credentials if credentials else None
    return await resolve_token_user(token, settings)
