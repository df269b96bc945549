from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ouca.database import get_db
from ouca.models.user import User
from ouca.services.auth_service import InvalidTokenError, decode_access_token, get_active_user
from ouca.services.import_service import ImportSubmitter
from ouca.services.import_status_store import ImportStatusStore, get_status_store

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError:
        raise credentials_error from None
    user = await get_active_user(db, user_id)
    if user is None:
        raise credentials_error
    return user


async def get_import_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.can_import:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Import permission required",
        )
    return current_user


def get_import_status_store() -> ImportStatusStore:
    return get_status_store()


def get_import_submitter() -> ImportSubmitter:
    from ouca.tasks.import_tasks import submit_import_task

    return submit_import_task
