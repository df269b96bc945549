from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from ouca.database import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def find_all(db: Session, model: type[ModelT]) -> list[ModelT]:
    result = db.execute(select(model))
    return list(result.scalars().all())


def create_many(
    db: Session,
    model: type[ModelT],
    rows: Sequence[BaseModel],
    owner_id: uuid.UUID | None,
    batch_size: int = 500,
) -> list[ModelT]:
    """Add ``rows`` as ``model`` instances owned by ``owner_id``.

    Rows are flushed every ``batch_size`` entities so generated ids are
    available; committing is left to the caller.
    """
    created: list[ModelT] = []
    for start in range(0, len(rows), batch_size):
        batch = [
            model(**row.model_dump(), owner_id=owner_id)
            for row in rows[start : start + batch_size]
        ]
        db.add_all(batch)
        db.flush()
        created.extend(batch)
        logger.debug("Flushed %d %s rows", len(batch), model.__tablename__)
    return created
