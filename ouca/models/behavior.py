from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ouca.database import Base
from ouca.models.label_entity import LABEL_MAX_LENGTH

CODE_MAX_LENGTH = 10


class BreederCode(str, enum.Enum):
    POSSIBLE = "possible"
    PROBABLE = "probable"
    CERTAIN = "certain"


class CodeLabelEntityMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH))
    label: Mapped[str] = mapped_column(String(LABEL_MAX_LENGTH))
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Environment(CodeLabelEntityMixin, Base):
    __tablename__ = "environments"


class Behavior(CodeLabelEntityMixin, Base):
    __tablename__ = "behaviors"

    breeder: Mapped[BreederCode | None] = mapped_column(
        Enum(BreederCode, name="breeder_code_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
