from __future__ import annotations

import os

# Must be set before ouca.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pathlib  # noqa: E402
import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Generator  # noqa: E402

import fakeredis  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ouca.api.deps import get_import_status_store, get_import_submitter  # noqa: E402
from ouca.database import Base, get_db  # noqa: E402
from ouca.main import app  # noqa: E402
from ouca.models import *  # noqa: E402, F401, F403 - ensure all models are loaded
from ouca.models.location import Department, Town  # noqa: E402
from ouca.models.user import User  # noqa: E402
from ouca.schemas.import_status import ImportJobPayload  # noqa: E402
from ouca.services.auth_service import create_access_token, hash_password  # noqa: E402
from ouca.services.import_status_store import ImportStatusStore  # noqa: E402

FIXTURES_DIR = pathlib.Path(__file__).parent / "fixtures"


@pytest.fixture()
def sync_db() -> Generator[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(engine, expire_on_commit=False)

    with session_factory() as session:
        yield session

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
async def async_db() -> AsyncGenerator[AsyncSession]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def status_store() -> ImportStatusStore:
    return ImportStatusStore(fakeredis.FakeRedis(), status_ttl_seconds=600, file_ttl_seconds=60)


@pytest.fixture()
def submitted() -> list[ImportJobPayload]:
    return []


@pytest.fixture()
async def client(
    async_db: AsyncSession,
    status_store: ImportStatusStore,
    submitted: list[ImportJobPayload],
) -> AsyncGenerator[httpx.AsyncClient]:
    async def _override_get_db() -> AsyncGenerator[AsyncSession]:
        yield async_db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_import_status_store] = lambda: status_store
    app.dependency_overrides[get_import_submitter] = lambda: submitted.append

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, username: str, **flags: bool) -> User:
    user = User(
        username=username,
        email=f"{username}@test.com",
        hashed_password=hash_password("testpass"),
        **flags,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture()
async def importer_user(async_db: AsyncSession) -> User:
    return await _create_user(async_db, "importer", can_import=True)


@pytest.fixture()
async def importer_token(importer_user: User) -> str:
    return create_access_token(importer_user)


@pytest.fixture()
async def reader_token(async_db: AsyncSession) -> str:
    user = await _create_user(async_db, "reader")
    return create_access_token(user)


@pytest.fixture()
async def admin_token(async_db: AsyncSession) -> str:
    user = await _create_user(async_db, "admin", is_admin=True, can_import=True)
    return create_access_token(user)


@pytest.fixture()
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def location_data(sync_db: Session) -> dict:
    """Department 38 with the towns Grenoble (185) and Meylan (229)."""
    isere = Department(code="38")
    sync_db.add(isere)
    sync_db.flush()
    grenoble = Town(department_id=isere.id, code=185, name="Grenoble")
    meylan = Town(department_id=isere.id, code=229, name="Meylan")
    sync_db.add_all([grenoble, meylan])
    sync_db.commit()
    return {"department": isere, "grenoble": grenoble, "meylan": meylan}


@pytest.fixture()
def sample_localities() -> bytes:
    return (FIXTURES_DIR / "localities.csv").read_bytes()
