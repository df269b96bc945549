from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from ouca.models.label_entity import Observer
from ouca.models.location import Locality
from ouca.schemas.import_status import ImportStatus, ImportStatusValue, ImportType
from ouca.services import reference_service
from ouca.services.importer.base import EntityImporter
from ouca.services.importer.definitions import get_import_definition
from ouca.services.importer.orchestrator import run_entity_import


def _status(kind: ImportType, owner_id: uuid.UUID) -> ImportStatus:
    return ImportStatus(upload_id=str(uuid.uuid4()), user_id=owner_id, entity_kind=kind)


def _importer(db: Session, kind: ImportType) -> EntityImporter:
    return EntityImporter(get_import_definition(kind), db)


def test_locality_file_end_to_end(
    sync_db: Session, location_data: dict, owner_id: uuid.UUID, sample_localities: bytes
):
    status = run_entity_import(
        _importer(sync_db, ImportType.LOCALITY),
        sample_localities,
        _status(ImportType.LOCALITY, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert status.progress.total_rows == 3
    assert status.progress.processed_rows == 3
    assert status.summary is not None
    assert status.summary.inserted_rows == 1
    assert status.summary.rejected_rows == 2

    assert [(e.row_number, e.message) for e in status.errors] == [
        (2, "A locality with this name already exists in this town"),
        (3, "The department does not exist"),
    ]
    assert status.errors[1].cells == ["99", "Somewhere", "Le Bois", "45.0", "5.0", "300"]

    locality = sync_db.execute(select(Locality)).scalar_one()
    assert locality.name == "Bastille"
    assert locality.town_id == location_data["grenoble"].id
    assert locality.latitude == pytest.approx(45.1988)
    assert locality.longitude == pytest.approx(5.7245)
    assert locality.altitude == 476
    assert locality.owner_id == owner_id


def test_malformed_rows_are_reported(sync_db: Session, owner_id: uuid.UUID):
    content = b"Jean\nMarie;extra\nPaul\n"
    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        content,
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert len(status.errors) == 1
    assert status.errors[0].row_number == 2
    assert status.errors[0].message == "The row has 2 column(s) but 1 are expected"
    labels = sorted(o.label for o in sync_db.execute(select(Observer)).scalars())
    assert labels == ["Jean", "Paul"]


def test_empty_file_completes_with_nothing(sync_db: Session, owner_id: uuid.UUID):
    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        b"\n\n",
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert status.progress.total_rows == 0
    assert status.summary.inserted_rows == 0
    assert status.errors == []


def test_progress_is_reported_in_order(sync_db: Session, owner_id: uuid.UUID):
    content = "\n".join(f"Observer {i}" for i in range(1, 8)).encode()
    snapshots: list[tuple[ImportStatusValue, int]] = []

    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        content,
        _status(ImportType.OBSERVER, owner_id),
        on_progress=lambda s: snapshots.append((s.status, s.progress.processed_rows)),
        progress_interval=3,
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert snapshots == [
        (ImportStatusValue.ONGOING, 0),
        (ImportStatusValue.ONGOING, 3),
        (ImportStatusValue.ONGOING, 6),
        (ImportStatusValue.COMPLETE, 7),
    ]
    processed = [p for _, p in snapshots]
    assert processed == sorted(processed)


def test_undecodable_file_fails(sync_db: Session, owner_id: uuid.UUID):
    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        "Mésange\n".encode("latin-1"),
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.FAILED
    assert status.error_description
    assert status.summary is None


def test_persist_failure_leaves_nothing(
    sync_db: Session, owner_id: uuid.UUID, monkeypatch: pytest.MonkeyPatch
):
    def _boom(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(reference_service, "create_many", _boom)

    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        b"Jean\nMarie\n",
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.FAILED
    assert status.error_description == "database unavailable"
    assert sync_db.execute(select(Observer)).scalars().all() == []


def test_unclosed_quote_keeps_rows_apart(sync_db: Session, owner_id: uuid.UUID):
    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        b'"Jean\nMarie\nPaul\n',
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert status.progress.total_rows == 3
    assert status.progress.processed_rows == 3
    labels = sorted(o.label for o in sync_db.execute(select(Observer)).scalars())
    assert labels == ['"Jean', "Marie", "Paul"]


def test_oversized_cell_is_a_row_error(sync_db: Session, owner_id: uuid.UUID):
    content = ("Jean\n" + "x" * 200_000 + "\nPaul\n").encode()
    status = run_entity_import(
        _importer(sync_db, ImportType.OBSERVER),
        content,
        _status(ImportType.OBSERVER, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert [(e.row_number, e.message) for e in status.errors] == [
        (2, "The label must not be longer than 100 characters"),
    ]
    labels = sorted(o.label for o in sync_db.execute(select(Observer)).scalars())
    assert labels == ["Jean", "Paul"]


def test_town_code_out_of_range_is_a_row_error(
    sync_db: Session, location_data: dict, owner_id: uuid.UUID
):
    status = run_entity_import(
        _importer(sync_db, ImportType.TOWN),
        b"38;123;Ville A\n38;99999999999999999999;Ville B\n",
        _status(ImportType.TOWN, owner_id),
    )

    assert status.status is ImportStatusValue.COMPLETE
    assert status.summary.inserted_rows == 1
    assert [(e.row_number, e.message) for e in status.errors] == [
        (2, "The town code must be a positive integer"),
    ]
