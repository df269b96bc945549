from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from sqlalchemy.orm import Session

from ouca.config import settings
from ouca.models.user import User
from ouca.schemas.import_status import (
    ImportJobPayload,
    ImportStatus,
    ImportStatusValue,
    ImportType,
)
from ouca.services.import_status_store import ImportStatusStore
from ouca.services.importer.base import EntityImporter
from ouca.services.importer.definitions import get_import_definition
from ouca.services.importer.orchestrator import run_entity_import

logger = logging.getLogger(__name__)

ImportSubmitter = Callable[[ImportJobPayload], None]


# ---------------------------------------------------------------------------
# Dispatcher (used by the API route)
# ---------------------------------------------------------------------------

def create_import_job(
    store: ImportStatusStore,
    file_content: bytes,
    entity_kind: ImportType,
    user: User,
    submit: ImportSubmitter,
) -> str:
    """Queue ``file_content`` for import and return its upload id right away."""
    upload_id = str(uuid.uuid4())

    store.save_file(upload_id, file_content)
    store.write(
        ImportStatus(
            upload_id=upload_id,
            user_id=user.id,
            entity_kind=entity_kind,
            status=ImportStatusValue.NOT_STARTED,
        )
    )
    submit(ImportJobPayload(upload_id=upload_id, entity_kind=entity_kind, user_id=user.id))

    logger.info(
        "Queued %s import %s for user %s (%d bytes)",
        entity_kind.value,
        upload_id,
        user.id,
        len(file_content),
    )
    return upload_id


def get_import_status(
    store: ImportStatusStore, upload_id: str, user: User
) -> ImportStatus | None:
    status = store.read(upload_id)
    if status is None:
        return None
    if status.user_id != user.id and not user.is_admin:
        return None
    return status


def write_import_status(store: ImportStatusStore, status: ImportStatus) -> None:
    store.write(status)


# ---------------------------------------------------------------------------
# Worker side (used by Celery tasks and the CLI)
# ---------------------------------------------------------------------------

def import_file_content(
    db: Session,
    file_content: bytes,
    status: ImportStatus,
    on_progress: Callable[[ImportStatus], None] | None = None,
) -> ImportStatus:
    importer = EntityImporter(
        get_import_definition(status.entity_kind),
        db,
        batch_size=settings.IMPORT_PERSIST_BATCH_SIZE,
    )
    return run_entity_import(
        importer,
        file_content,
        status,
        on_progress=on_progress,
        progress_interval=settings.IMPORT_PROGRESS_INTERVAL,
        delimiter=settings.IMPORT_CSV_DELIMITER,
        encoding=settings.IMPORT_CSV_ENCODING,
    )


def run_import_job(db: Session, store: ImportStatusStore, payload: ImportJobPayload) -> ImportStatus:
    """Process one queued upload and leave its terminal status in the store."""
    status = ImportStatus(
        upload_id=payload.upload_id,
        user_id=payload.user_id,
        entity_kind=payload.entity_kind,
    )

    file_content = store.load_file(payload.upload_id)
    if file_content is None:
        logger.error("Uploaded file for import %s not found", payload.upload_id)
        status.status = ImportStatusValue.FAILED
        status.error_description = "File content not found"
        store.write(status)
        return status

    status = import_file_content(
        db,
        file_content,
        status,
        on_progress=lambda snapshot: write_import_status(store, snapshot),
    )
    store.delete_file(payload.upload_id)
    return status
