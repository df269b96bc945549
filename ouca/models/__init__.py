from __future__ import annotations

from ouca.models.behavior import Behavior, Environment
from ouca.models.label_entity import (
    Age,
    DistanceEstimate,
    NumberEstimate,
    Observer,
    Sex,
    Weather,
)
from ouca.models.location import Department, Locality, Town
from ouca.models.species import Species, SpeciesClass
from ouca.models.user import User

__all__ = [
    "Age",
    "Behavior",
    "Department",
    "DistanceEstimate",
    "Environment",
    "Locality",
    "NumberEstimate",
    "Observer",
    "Sex",
    "Species",
    "SpeciesClass",
    "Town",
    "User",
    "Weather",
]
