from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ouca.database import Base
from ouca.models.label_entity import LabelEntityMixin

SPECIES_CODE_MAX_LENGTH = 20
SPECIES_NAME_MAX_LENGTH = 100


class SpeciesClass(LabelEntityMixin, Base):
    __tablename__ = "species_classes"


class Species(Base):
    __tablename__ = "species"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("species_classes.id"), nullable=True
    )
    code: Mapped[str] = mapped_column(String(SPECIES_CODE_MAX_LENGTH))
    french_name: Mapped[str] = mapped_column(String(SPECIES_NAME_MAX_LENGTH))
    latin_name: Mapped[str] = mapped_column(String(SPECIES_NAME_MAX_LENGTH))
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
