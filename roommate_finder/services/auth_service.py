"""
Registration, login and token lifecycle.

Passwords are hashed exactly once, here, when an account is created. bcrypt is
CPU-bound, so hashing and verification run in a worker thread to keep the event
loop free.
"""

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

import jwt
from beanie import PydanticObjectId
from bson.errors import InvalidId
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError, PyMongoError

from roommate_finder.config import Settings
from roommate_finder.exceptions import AuthError, ConflictError, InternalError, NotFoundError, ValidationError
from roommate_finder.models.user import User, utcnow

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid credentials"


@lru_cache
def _password_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(raw: str, rounds: int = 10) -> str:
    return _password_context(rounds).hash(raw)


def verify_password(raw: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return _password_context().verify(raw, hashed)
    except ValueError:
        # Unrecognised or corrupt hash in the store
        logger.warning("Stored password hash could not be parsed")
        return False


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def create_access_token(user_id: Any, settings: Settings) -> str:
    """Sign a token bound to the user id with the configured expiry."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_in_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> PydanticObjectId:
    """
    Verify signature and expiry and return the user id the token is bound to.
    Raises AuthError for anything that is not a valid token from this server.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("JWT verification failed: %s", e)
        raise AuthError("Not authorized, token failed")

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise AuthError("Not authorized, token failed")
    try:
        return PydanticObjectId(subject)
    except InvalidId:
        raise AuthError("Not authorized, token failed")


async def get_user_by_id(user_id: PydanticObjectId) -> User:
    try:
        user = await User.get(user_id)
    except PyMongoError as e:
        logger.exception("Failed to load user %s", user_id)
        raise InternalError() from e
    if not user:
        raise NotFoundError("User not found")
    return user


async def resolve_token_user(token: Optional[str], settings: Settings) -> User:
    """Token in, live user record out. A vanished user is an auth failure."""
    if not token:
        raise AuthError("Not authorized, no token")
    user_id = decode_access_token(token, settings)
    try:
        return await get_user_by_id(user_id)
    except NotFoundError:
        logger.warning("Token references missing user %s", user_id)
        raise AuthError("Not authorized, user not found")


async def register_user(
    settings: Settings,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
) -> tuple[User, str]:
    """Create an account and return it together with a fresh token."""
    name = _clean(name)
    email = _clean(email).lower()
    password = _clean(password)

    if not name or not email or not password:
        raise ValidationError("Please provide name, email and password")
    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(email):
        raise ValidationError("Please add a valid email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    try:
        if await User.find_one(User.email == email):
            raise ConflictError("User already exists")

        password_hash = await asyncio.to_thread(hash_password, password, settings.bcrypt_rounds)
        now = utcnow()
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        await user.insert()
    except DuplicateKeyError:
        raise ConflictError("User already exists")
    except PyMongoError as e:
        logger.exception("Failed to register user")
        raise InternalError() from e

    logger.info("Registered user %s", user.id)
    return user, create_access_token(user.id, settings)


async def authenticate_user(settings: Settings, email: Optional[str], password: Optional[str]) -> str:
    """
    Check credentials and return a token. Unknown email and wrong password fail
    with the same message.
    """
    email = _clean(email).lower()
    password = _clean(password)

    if not email or not password:
        raise ValidationError("Please provide email and password")

    try:
        user = await User.find_one(User.email == email)
    except PyMongoError as e:
        logger.exception("Failed to look up user for login")
        raise InternalError() from e

    if not user or not await asyncio.to_thread(verify_password, password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    return create_access_token(user.id, settings)
