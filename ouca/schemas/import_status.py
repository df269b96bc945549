from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field


class ImportType(str, enum.Enum):
    OBSERVER = "observer"
    SEX = "sex"
    AGE = "age"
    WEATHER = "weather"
    NUMBER_ESTIMATE = "number-estimate"
    DISTANCE_ESTIMATE = "distance-estimate"
    SPECIES_CLASS = "species-class"
    ENVIRONMENT = "environment"
    BEHAVIOR = "behavior"
    DEPARTMENT = "department"
    TOWN = "town"
    LOCALITY = "locality"
    SPECIES = "species"


class ImportStatusValue(str, enum.Enum):
    NOT_STARTED = "not_started"
    ONGOING = "ongoing"
    FAILED = "failed"
    COMPLETE = "complete"


TERMINAL_STATUSES = {ImportStatusValue.FAILED, ImportStatusValue.COMPLETE}


class RowError(BaseModel):
    row_number: int
    message: str
    cells: list[str] = []


class ImportProgress(BaseModel):
    processed_rows: int = 0
    total_rows: int | None = None


class ImportSummary(BaseModel):
    inserted_rows: int
    rejected_rows: int


class ImportStatus(BaseModel):
    upload_id: str
    user_id: uuid.UUID
    entity_kind: ImportType
    status: ImportStatusValue = ImportStatusValue.NOT_STARTED
    progress: ImportProgress = Field(default_factory=ImportProgress)
    errors: list[RowError] = []
    summary: ImportSummary | None = None
    error_description: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ImportJobPayload(BaseModel):
    """Message handed to the background worker for one uploaded file."""

    upload_id: str
    entity_kind: ImportType
    user_id: uuid.UUID


class UploadResponse(BaseModel):
    upload_id: str
