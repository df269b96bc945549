from __future__ import annotations

import logging

from ouca.database import sync_session_factory
from ouca.schemas.import_status import ImportJobPayload
from ouca.services.import_status_store import get_status_store
from ouca.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="ouca.tasks.import_tasks.process_import_task", bind=True)
def process_import_task(self, upload_id: str, entity_kind: str, user_id: str) -> dict:  # type: ignore[no-untyped-def]
    """Import one uploaded file. Row errors end up in the status, not here."""
    from ouca.services.import_service import run_import_job

    payload = ImportJobPayload(upload_id=upload_id, entity_kind=entity_kind, user_id=user_id)
    logger.info(
        "Processing %s import %s (task %s)", payload.entity_kind.value, upload_id, self.request.id
    )

    with sync_session_factory() as db:
        status = run_import_job(db, get_status_store(), payload)

    return {
        "upload_id": upload_id,
        "status": status.status.value,
        "inserted": status.summary.inserted_rows if status.summary else 0,
        "errors": len(status.errors),
    }


def submit_import_task(payload: ImportJobPayload) -> None:
    process_import_task.apply_async(
        kwargs=payload.model_dump(mode="json"),
        task_id=payload.upload_id,
    )
