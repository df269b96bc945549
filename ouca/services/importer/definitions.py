"""Import definitions for every importable entity kind.

Label-only kinds share one builder. Kinds that reference other entities
(town, locality, species) load lookup tables once per job and resolve the
parent before the row itself is checked for duplicates.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ouca.database import Base
from ouca.models.behavior import CODE_MAX_LENGTH, Behavior, BreederCode, Environment
from ouca.models.label_entity import (
    LABEL_MAX_LENGTH,
    Age,
    DistanceEstimate,
    NumberEstimate,
    Observer,
    Sex,
    Weather,
)
from ouca.models.location import (
    DEPARTMENT_CODE_MAX_LENGTH,
    LOCALITY_NAME_MAX_LENGTH,
    TOWN_CODE_MAX_VALUE,
    TOWN_NAME_MAX_LENGTH,
    Department,
    Locality,
    Town,
)
from ouca.models.species import (
    SPECIES_CODE_MAX_LENGTH,
    SPECIES_NAME_MAX_LENGTH,
    Species,
    SpeciesClass,
)
from ouca.schemas.import_status import ImportType
from ouca.schemas.reference import (
    BehaviorCreate,
    CodeLabelEntityCreate,
    DepartmentCreate,
    LabelEntityCreate,
    LocalityCreate,
    NumberEstimateCreate,
    SpeciesCreate,
    TownCreate,
)
from ouca.services import reference_service
from ouca.services.importer.base import ImportDefinition, NaturalKey, normalize
from ouca.services.importer.validators import (
    check_altitude,
    check_latitude,
    check_longitude,
    check_max_length,
    check_required,
    first_error,
)

TRUE_VALUES = {"1", "true", "oui", "yes"}
FALSE_VALUES = {"", "0", "false", "non", "no"}


def _check_text(value: str, field_name: str, max_length: int) -> str | None:
    return first_error(
        check_required(value, field_name),
        check_max_length(value, field_name, max_length),
    )


def _decimal(value: str) -> str:
    return value.replace(",", ".")


# ---------------------------------------------------------------------------
# Label entities
# ---------------------------------------------------------------------------

def _build_label_entity(cells: Sequence[str], _references: object) -> LabelEntityCreate | str:
    label = cells[0]
    error = _check_text(label, "label", LABEL_MAX_LENGTH)
    if error:
        return error
    return LabelEntityCreate(label=label)


def _label_keys(entity: object) -> list[NaturalKey]:
    return [("label", normalize(entity.label))]


def _label_definition(kind: ImportType, model: type[Base], entity_name: str) -> ImportDefinition:
    return ImportDefinition(
        kind=kind,
        model=model,
        columns=("label",),
        build_candidate=_build_label_entity,
        natural_keys=_label_keys,
        duplicate_messages={"label": f"{entity_name} with this label already exists"},
    )


def _build_number_estimate(
    cells: Sequence[str], _references: object
) -> NumberEstimateCreate | str:
    label, non_compte = cells[0], cells[1].casefold()
    error = _check_text(label, "label", LABEL_MAX_LENGTH)
    if error:
        return error
    if non_compte not in TRUE_VALUES | FALSE_VALUES:
        return "The non-counted flag must be empty, 0/false or 1/true"
    return NumberEstimateCreate(label=label, non_compte=non_compte in TRUE_VALUES)


# ---------------------------------------------------------------------------
# Code + label entities
# ---------------------------------------------------------------------------

def _check_code_label(code: str, label: str) -> str | None:
    return first_error(
        _check_text(code, "code", CODE_MAX_LENGTH),
        _check_text(label, "label", LABEL_MAX_LENGTH),
    )


def _build_environment(cells: Sequence[str], _references: object) -> CodeLabelEntityCreate | str:
    code, label = cells[0], cells[1]
    error = _check_code_label(code, label)
    if error:
        return error
    return CodeLabelEntityCreate(code=code, label=label)


def _build_behavior(cells: Sequence[str], _references: object) -> BehaviorCreate | str:
    code, label, breeder = cells[0], cells[1], cells[2].casefold()
    error = _check_code_label(code, label)
    if error:
        return error
    if breeder and breeder not in {b.value for b in BreederCode}:
        return "The breeding status must be empty or one of possible, probable, certain"
    return BehaviorCreate(code=code, label=label, breeder=BreederCode(breeder) if breeder else None)


def _code_label_keys(entity: object) -> list[NaturalKey]:
    return [("code", normalize(entity.code)), ("label", normalize(entity.label))]


def _code_label_messages(entity_name: str) -> dict[str, str]:
    return {
        "code": f"{entity_name} with this code already exists",
        "label": f"{entity_name} with this label already exists",
    }


# ---------------------------------------------------------------------------
# Departments, towns and localities
# ---------------------------------------------------------------------------

@dataclass
class LocationReferences:
    departments_by_code: dict[str, Department]
    towns_by_code: dict[tuple[uuid.UUID, int], Town]
    towns_by_name: dict[tuple[uuid.UUID, str], Town]

    def find_department(self, code: str) -> Department | None:
        return self.departments_by_code.get(normalize(code))

    def find_town(self, department: Department, code_or_name: str) -> Town | None:
        if code_or_name.isdecimal():
            town = self.towns_by_code.get((department.id, int(code_or_name)))
            if town is not None:
                return town
        return self.towns_by_name.get((department.id, normalize(code_or_name)))


def load_location_references(db: Session) -> LocationReferences:
    towns = reference_service.find_all(db, Town)
    return LocationReferences(
        departments_by_code={
            normalize(d.code): d for d in reference_service.find_all(db, Department)
        },
        towns_by_code={(t.department_id, t.code): t for t in towns},
        towns_by_name={(t.department_id, normalize(t.name)): t for t in towns},
    )


def _build_department(cells: Sequence[str], _references: object) -> DepartmentCreate | str:
    code = cells[0]
    error = _check_text(code, "department code", DEPARTMENT_CODE_MAX_LENGTH)
    if error:
        return error
    return DepartmentCreate(code=code)


def _build_town(cells: Sequence[str], references: LocationReferences) -> TownCreate | str:
    department_code, code, name = cells[0], cells[1], cells[2]
    error = first_error(
        check_required(department_code, "department code"),
        check_required(code, "town code"),
        _check_text(name, "town name", TOWN_NAME_MAX_LENGTH),
    )
    if error:
        return error
    if not code.isdecimal() or not 1 <= int(code) <= TOWN_CODE_MAX_VALUE:
        return "The town code must be a positive integer"

    department = references.find_department(department_code)
    if department is None:
        return "The department does not exist"
    return TownCreate(department_id=department.id, code=int(code), name=name)


def _town_keys(entity: object) -> list[NaturalKey]:
    return [
        ("code", entity.department_id, entity.code),
        ("name", entity.department_id, normalize(entity.name)),
    ]


@dataclass(frozen=True)
class ImportedLocality:
    """One locality row, trimmed but not converted yet."""

    department: str
    town: str
    name: str
    latitude: str
    longitude: str
    altitude: str

    @classmethod
    def from_cells(cls, cells: Sequence[str]) -> ImportedLocality:
        return cls(
            department=cells[0],
            town=cells[1],
            name=cells[2],
            latitude=_decimal(cells[3]),
            longitude=_decimal(cells[4]),
            altitude=_decimal(cells[5]),
        )

    def check_validity(self) -> str | None:
        return first_error(
            check_required(self.department, "department of the locality"),
            check_required(self.town, "town of the locality"),
            _check_text(self.name, "locality name", LOCALITY_NAME_MAX_LENGTH),
            check_latitude(self.latitude),
            check_longitude(self.longitude),
            check_altitude(self.altitude),
        )

    def build(self, town_id: uuid.UUID) -> LocalityCreate:
        return LocalityCreate(
            town_id=town_id,
            name=self.name,
            latitude=float(self.latitude),
            longitude=float(self.longitude),
            altitude=int(float(self.altitude)),
        )


def _build_locality(cells: Sequence[str], references: LocationReferences) -> LocalityCreate | str:
    imported = ImportedLocality.from_cells(cells)
    error = imported.check_validity()
    if error:
        return error

    department = references.find_department(imported.department)
    if department is None:
        return "The department does not exist"

    town = references.find_town(department, imported.town)
    if town is None:
        return "The town does not exist in this department"

    return imported.build(town.id)


def _locality_keys(entity: object) -> list[NaturalKey]:
    return [("name", entity.town_id, normalize(entity.name))]


# ---------------------------------------------------------------------------
# Species
# ---------------------------------------------------------------------------

def load_species_classes(db: Session) -> dict[str, SpeciesClass]:
    return {normalize(c.label): c for c in reference_service.find_all(db, SpeciesClass)}


def _build_species(
    cells: Sequence[str], classes: dict[str, SpeciesClass]
) -> SpeciesCreate | str:
    class_label, code, french_name, latin_name = cells[0], cells[1], cells[2], cells[3]
    error = first_error(
        check_required(class_label, "species class"),
        _check_text(code, "species code", SPECIES_CODE_MAX_LENGTH),
        _check_text(french_name, "french name", SPECIES_NAME_MAX_LENGTH),
        _check_text(latin_name, "latin name", SPECIES_NAME_MAX_LENGTH),
    )
    if error:
        return error

    species_class = classes.get(normalize(class_label))
    if species_class is None:
        return "The species class does not exist"

    return SpeciesCreate(
        class_id=species_class.id,
        code=code,
        french_name=french_name,
        latin_name=latin_name,
    )


def _species_keys(entity: object) -> list[NaturalKey]:
    return [
        ("code", normalize(entity.code)),
        ("french_name", normalize(entity.french_name)),
        ("latin_name", normalize(entity.latin_name)),
    ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_definitions: dict[ImportType, ImportDefinition] = {}


def register(definition: ImportDefinition) -> None:
    _definitions[definition.kind] = definition


def get_import_definition(kind: ImportType) -> ImportDefinition:
    try:
        return _definitions[kind]
    except KeyError:
        raise ValueError(f"No importer registered for {kind.value}") from None


def get_all() -> dict[ImportType, ImportDefinition]:
    return dict(_definitions)


for _kind, _model, _name in (
    (ImportType.OBSERVER, Observer, "An observer"),
    (ImportType.SEX, Sex, "A sex"),
    (ImportType.AGE, Age, "An age"),
    (ImportType.WEATHER, Weather, "A weather"),
    (ImportType.DISTANCE_ESTIMATE, DistanceEstimate, "A distance estimate"),
    (ImportType.SPECIES_CLASS, SpeciesClass, "A species class"),
):
    register(_label_definition(_kind, _model, _name))

register(
    ImportDefinition(
        kind=ImportType.NUMBER_ESTIMATE,
        model=NumberEstimate,
        columns=("label", "non_compte"),
        build_candidate=_build_number_estimate,
        natural_keys=_label_keys,
        duplicate_messages={"label": "A number estimate with this label already exists"},
    )
)
register(
    ImportDefinition(
        kind=ImportType.ENVIRONMENT,
        model=Environment,
        columns=("code", "label"),
        build_candidate=_build_environment,
        natural_keys=_code_label_keys,
        duplicate_messages=_code_label_messages("An environment"),
    )
)
register(
    ImportDefinition(
        kind=ImportType.BEHAVIOR,
        model=Behavior,
        columns=("code", "label", "breeder"),
        build_candidate=_build_behavior,
        natural_keys=_code_label_keys,
        duplicate_messages=_code_label_messages("A behavior"),
    )
)
register(
    ImportDefinition(
        kind=ImportType.DEPARTMENT,
        model=Department,
        columns=("code",),
        build_candidate=_build_department,
        natural_keys=lambda entity: [("code", normalize(entity.code))],
        duplicate_messages={"code": "A department with this code already exists"},
    )
)
register(
    ImportDefinition(
        kind=ImportType.TOWN,
        model=Town,
        columns=("department", "code", "name"),
        build_candidate=_build_town,
        natural_keys=_town_keys,
        duplicate_messages={
            "code": "A town with this code already exists in this department",
            "name": "A town with this name already exists in this department",
        },
        load_references=load_location_references,
    )
)
register(
    ImportDefinition(
        kind=ImportType.LOCALITY,
        model=Locality,
        columns=("department", "town", "name", "latitude", "longitude", "altitude"),
        build_candidate=_build_locality,
        natural_keys=_locality_keys,
        duplicate_messages={"name": "A locality with this name already exists in this town"},
        load_references=load_location_references,
    )
)
register(
    ImportDefinition(
        kind=ImportType.SPECIES,
        model=Species,
        columns=("class", "code", "french_name", "latin_name"),
        build_candidate=_build_species,
        natural_keys=_species_keys,
        duplicate_messages={
            "code": "A species with this code already exists",
            "french_name": "A species with this french name already exists",
            "latin_name": "A species with this latin name already exists",
        },
        load_references=load_species_classes,
    )
)
