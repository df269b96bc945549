"""Reference data that is identified by a single label."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ouca.database import Base

LABEL_MAX_LENGTH = 100


class LabelEntityMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    label: Mapped[str] = mapped_column(String(LABEL_MAX_LENGTH))
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Observer(LabelEntityMixin, Base):
    __tablename__ = "observers"


class Sex(LabelEntityMixin, Base):
    __tablename__ = "sexes"


class Age(LabelEntityMixin, Base):
    __tablename__ = "ages"


class Weather(LabelEntityMixin, Base):
    __tablename__ = "weathers"


class DistanceEstimate(LabelEntityMixin, Base):
    __tablename__ = "distance_estimates"


class NumberEstimate(LabelEntityMixin, Base):
    __tablename__ = "number_estimates"

    # Set when the individuals were not actually counted
    non_compte: Mapped[bool] = mapped_column(Boolean, default=False)
