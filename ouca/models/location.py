from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ouca.database import Base

DEPARTMENT_CODE_MAX_LENGTH = 100
TOWN_NAME_MAX_LENGTH = 100
LOCALITY_NAME_MAX_LENGTH = 150
# Largest value a 32-bit INTEGER column holds
TOWN_CODE_MAX_VALUE = 2**31 - 1


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(DEPARTMENT_CODE_MAX_LENGTH))
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Town(Base):
    __tablename__ = "towns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("departments.id"), index=True
    )
    code: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(TOWN_NAME_MAX_LENGTH))
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Locality(Base):
    __tablename__ = "localities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    town_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("towns.id"), index=True)
    name: Mapped[str] = mapped_column(String(LOCALITY_NAME_MAX_LENGTH))
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    altitude: Mapped[int] = mapped_column(Integer)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
