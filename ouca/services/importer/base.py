from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ouca.database import Base
from ouca.schemas.import_status import ImportType
from ouca.services import reference_service

logger = logging.getLogger(__name__)

# First element names the key ("label", "code", ...), the rest are normalised values
NaturalKey = tuple[Hashable, ...]


def normalize(value: str) -> str:
    return value.strip().casefold()


class ImporterState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PROCESSING = "processing"
    DONE = "done"


class ImporterStateError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImportDefinition:
    """Everything the generic importer needs to know about one entity kind.

    ``build_candidate`` turns the trimmed cells of a well-formed row into the
    create payload, running field-level then referential checks, and returns
    the first failing message instead when the row is invalid.
    ``natural_keys`` must work on both persisted entities and payloads.
    """

    kind: ImportType
    model: type[Base]
    columns: tuple[str, ...]
    build_candidate: Callable[[Sequence[str], Any], BaseModel | str]
    natural_keys: Callable[[Any], list[NaturalKey]]
    duplicate_messages: dict[str, str]
    load_references: Callable[[Session], Any] | None = None

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def duplicate_message(self, key: NaturalKey) -> str:
        return self.duplicate_messages[str(key[0])]


@dataclass
class EntityImporter:
    """Single-use importer for one job and one entity kind.

    The working set maps every natural key of the persisted entities, and of
    the rows accepted so far, to the entity that owns it.
    """

    definition: ImportDefinition
    db: Session
    batch_size: int = 500
    state: ImporterState = field(default=ImporterState.UNINITIALIZED, init=False)
    references: Any = field(default=None, init=False)
    _working_set: dict[NaturalKey, Any] = field(default_factory=dict, init=False, repr=False)
    _to_insert: list[BaseModel] = field(default_factory=list, init=False, repr=False)

    @property
    def kind(self) -> ImportType:
        return self.definition.kind

    @property
    def column_count(self) -> int:
        return self.definition.column_count

    @property
    def staged(self) -> tuple[BaseModel, ...]:
        return tuple(self._to_insert)

    def init(self) -> None:
        if self.state is not ImporterState.UNINITIALIZED:
            raise ImporterStateError(f"Importer already initialized ({self.state.value})")

        self._to_insert = []
        self._working_set = {}
        if self.definition.load_references is not None:
            self.references = self.definition.load_references(self.db)

        existing = reference_service.find_all(self.db, self.definition.model)
        for entity in existing:
            for key in self.definition.natural_keys(entity):
                self._working_set.setdefault(key, entity)

        self.state = ImporterState.INITIALIZED
        logger.info(
            "Initialized %s importer with %d existing entities",
            self.kind.value,
            len(existing),
        )

    def validate_and_stage(self, cells: Sequence[str]) -> str | None:
        """Stage the row and return ``None``, or return why it was rejected.

        ``cells`` must already hold ``column_count`` values. A rejected row
        leaves the working set and the insert buffer untouched.
        """
        if self.state not in (ImporterState.INITIALIZED, ImporterState.PROCESSING):
            raise ImporterStateError(f"Cannot process rows while {self.state.value}")
        self.state = ImporterState.PROCESSING

        candidate = self.definition.build_candidate(cells, self.references)
        if isinstance(candidate, str):
            return candidate

        keys = self.definition.natural_keys(candidate)
        for key in keys:
            if key in self._working_set:
                return self.definition.duplicate_message(key)

        self._to_insert.append(candidate)
        for key in keys:
            self._working_set[key] = candidate
        return None

    def persist(self, owner_id: uuid.UUID | None) -> list[Base]:
        """Insert every staged row in one transaction."""
        if self.state not in (ImporterState.INITIALIZED, ImporterState.PROCESSING):
            raise ImporterStateError(f"Cannot persist while {self.state.value}")

        try:
            created = reference_service.create_many(
                self.db,
                self.definition.model,
                self._to_insert,
                owner_id,
                batch_size=self.batch_size,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.state = ImporterState.DONE
        logger.info("Persisted %d %s entities", len(created), self.kind.value)
        return created
