from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from ouca.schemas.import_status import (
    ImportProgress,
    ImportStatus,
    ImportStatusValue,
    ImportSummary,
    RowError,
)
from ouca.services.importer.base import EntityImporter
from ouca.services.importer.row_parser import (
    MalformedRowError,
    check_column_count,
    count_rows,
    iter_rows,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportStatus], None]


def _emit(status: ImportStatus, on_progress: ProgressCallback | None) -> None:
    status.updated_at = datetime.now(UTC)
    if on_progress is not None:
        on_progress(status)


def run_entity_import(
    importer: EntityImporter,
    file_content: bytes,
    status: ImportStatus,
    on_progress: ProgressCallback | None = None,
    progress_interval: int = 50,
    delimiter: str = ";",
    encoding: str = "utf-8",
) -> ImportStatus:
    """Run one import job end to end and return its terminal status.

    Invalid rows are recorded in ``status.errors`` and skipped; only an
    unexpected exception (decoding, storage...) fails the whole job, in which
    case nothing from this job is persisted.
    """
    status.status = ImportStatusValue.ONGOING
    status.progress = ImportProgress(processed_rows=0)
    status.errors = []
    status.summary = None
    status.error_description = None

    try:
        status.progress.total_rows = count_rows(file_content, delimiter, encoding)
        _emit(status, on_progress)

        importer.init()

        for row in iter_rows(file_content, delimiter, encoding):
            try:
                check_column_count(row, importer.column_count)
                error = importer.validate_and_stage(row.cells)
            except MalformedRowError as exc:
                error = str(exc)

            if error:
                status.errors.append(
                    RowError(row_number=row.number, message=error, cells=row.cells)
                )

            status.progress.processed_rows = row.number
            if progress_interval > 0 and row.number % progress_interval == 0:
                _emit(status, on_progress)

        created = importer.persist(status.user_id)

        status.status = ImportStatusValue.COMPLETE
        status.summary = ImportSummary(
            inserted_rows=len(created),
            rejected_rows=len(status.errors),
        )
        logger.info(
            "Import %s (%s) complete: %d inserted, %d rejected",
            status.upload_id,
            status.entity_kind.value,
            len(created),
            len(status.errors),
        )

    except Exception as exc:
        logger.exception("Import %s failed", status.upload_id)
        status.status = ImportStatusValue.FAILED
        status.error_description = str(exc)[:1000]

    _emit(status, on_progress)
    return status
