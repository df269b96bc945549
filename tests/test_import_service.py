from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from ouca.models.label_entity import Weather
from ouca.models.user import User
from ouca.schemas.import_status import (
    ImportJobPayload,
    ImportStatus,
    ImportStatusValue,
    ImportType,
)
from ouca.services.import_service import (
    create_import_job,
    get_import_status,
    run_import_job,
)
from ouca.services.import_status_store import ImportStatusStore


def _user(**flags: bool) -> User:
    return User(id=uuid.uuid4(), username="u", email="u@test.com", hashed_password="x", **flags)


def test_create_import_job(status_store: ImportStatusStore):
    user = _user(can_import=True)
    queued: list[ImportJobPayload] = []

    upload_id = create_import_job(status_store, b"Soleil\n", ImportType.WEATHER, user, queued.append)

    assert uuid.UUID(upload_id)
    assert queued == [
        ImportJobPayload(upload_id=upload_id, entity_kind=ImportType.WEATHER, user_id=user.id)
    ]
    assert status_store.load_file(upload_id) == b"Soleil\n"

    status = status_store.read(upload_id)
    assert status is not None
    assert status.status is ImportStatusValue.NOT_STARTED
    assert status.user_id == user.id
    assert status.entity_kind is ImportType.WEATHER


def test_create_import_job_ids_are_unique(status_store: ImportStatusStore):
    user = _user(can_import=True)
    ids = {
        create_import_job(status_store, b"x\n", ImportType.SEX, user, lambda payload: None)
        for _ in range(5)
    }
    assert len(ids) == 5


def test_status_store_ttl(status_store: ImportStatusStore):
    upload_id = create_import_job(
        status_store, b"x\n", ImportType.SEX, _user(), lambda payload: None
    )
    assert 0 < status_store.client.ttl(f"import_status:{upload_id}") <= 600
    assert 0 < status_store.client.ttl(f"import_file:{upload_id}") <= 60


def test_get_import_status_visibility(status_store: ImportStatusStore):
    owner = _user(can_import=True)
    other = _user(can_import=True)
    admin = _user(is_admin=True)

    upload_id = create_import_job(status_store, b"x\n", ImportType.AGE, owner, lambda p: None)

    assert get_import_status(status_store, upload_id, owner) is not None
    assert get_import_status(status_store, upload_id, other) is None
    assert get_import_status(status_store, upload_id, admin) is not None
    assert get_import_status(status_store, str(uuid.uuid4()), owner) is None


def test_run_import_job(sync_db: Session, status_store: ImportStatusStore, owner_id: uuid.UUID):
    upload_id = str(uuid.uuid4())
    status_store.save_file(upload_id, b"Soleil\nPluie\nsoleil\n")
    payload = ImportJobPayload(upload_id=upload_id, entity_kind=ImportType.WEATHER, user_id=owner_id)

    result = run_import_job(sync_db, status_store, payload)

    assert result.status is ImportStatusValue.COMPLETE
    stored = status_store.read(upload_id)
    assert stored == result
    assert stored.summary.inserted_rows == 2
    assert stored.errors[0].row_number == 3
    assert stored.errors[0].message == "A weather with this label already exists"
    assert status_store.load_file(upload_id) is None

    labels = sorted(w.label for w in sync_db.execute(select(Weather)).scalars())
    assert labels == ["Pluie", "Soleil"]


def test_run_import_job_missing_file(sync_db: Session, status_store: ImportStatusStore):
    payload = ImportJobPayload(
        upload_id=str(uuid.uuid4()), entity_kind=ImportType.WEATHER, user_id=uuid.uuid4()
    )

    result = run_import_job(sync_db, status_store, payload)

    assert result.status is ImportStatusValue.FAILED
    assert result.error_description == "File content not found"
    assert status_store.read(payload.upload_id).status is ImportStatusValue.FAILED


def test_status_roundtrips_through_store(status_store: ImportStatusStore):
    status = ImportStatus(
        upload_id=str(uuid.uuid4()), user_id=uuid.uuid4(), entity_kind=ImportType.LOCALITY
    )
    status_store.write(status)
    assert status_store.read(status.upload_id) == status
