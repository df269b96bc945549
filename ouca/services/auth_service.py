"""Password hashing, JWT access tokens and user lookup for the API."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ouca.config import settings
from ouca.models.user import User

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """The bearer token is malformed, expired or signed with another key."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def create_access_token(user: User, expires_in: timedelta | None = None) -> str:
    issued_at = datetime.now(UTC)
    if expires_in is None:
        expires_in = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user.id),
        "iat": issued_at,
        "exp": issued_at + expires_in,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    """Return the user id carried by ``token``."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return uuid.UUID(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError(str(exc)) from exc


async def authenticate_user(
    db: AsyncSession, username: str, password: str
) -> User | None:
    """Return the active user matching the credentials, or ``None``."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %r", username)
        return None
    if not user.is_active:
        logger.warning("Login refused for inactive user %s", user.id)
        return None
    return user


async def get_active_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True))
    )
    return result.scalar_one_or_none()
