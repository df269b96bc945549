"""Create payloads for reference data, as staged by the importers."""

from __future__ import annotations

import uuid

from pydantic import BaseModel

from ouca.models.behavior import BreederCode


class LabelEntityCreate(BaseModel):
    label: str


class NumberEstimateCreate(LabelEntityCreate):
    non_compte: bool = False


class CodeLabelEntityCreate(BaseModel):
    code: str
    label: str


class BehaviorCreate(CodeLabelEntityCreate):
    breeder: BreederCode | None = None


class DepartmentCreate(BaseModel):
    code: str


class TownCreate(BaseModel):
    department_id: uuid.UUID
    code: int
    name: str


class LocalityCreate(BaseModel):
    town_id: uuid.UUID
    name: str
    latitude: float
    longitude: float
    altitude: int


class SpeciesCreate(BaseModel):
    class_id: uuid.UUID
    code: str
    french_name: str
    latin_name: str
