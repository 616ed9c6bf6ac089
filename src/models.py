"""Data classes for house-scoped family tree entities."""

from dataclasses import dataclass, field
from typing import Any, Hashable

PersonId = Hashable
HouseId = Hashable

# Relationship types
PARENT = "parent"
ADOPTED_PARENT = "adopted-parent"
SPOUSE = "spouse"
LINEAGE_GAP = "lineage-gap"

PARENT_TYPES = (PARENT, ADOPTED_PARENT)

# Legitimacy statuses
LEGITIMATE = "legitimate"
BASTARD = "bastard"
ADOPTED = "adopted"
COMMONER = "commoner"
UNKNOWN = "unknown"

LEGITIMACY_STATUSES = (LEGITIMATE, BASTARD, ADOPTED, COMMONER, UNKNOWN)

# Missing or malformed years sort before every real year
MISSING_YEAR = -(10**9)


@dataclass
class Person:
    id: PersonId
    name: str | None = None
    birth_year: int | None = None
    death_year: int | None = None
    house_id: HouseId | None = None
    legitimacy_status: str = LEGITIMATE

    @property
    def sort_year(self) -> int:
        return year_or_sentinel(self.birth_year)


@dataclass
class House:
    id: HouseId
    name: str | None = None
    parent_house_id: HouseId | None = None  # non-null marks a cadet house

    @property
    def is_cadet(self) -> bool:
        return self.parent_house_id is not None


@dataclass
class RelationshipEdge:
    relationship_type: str  # parent, adopted-parent, spouse, lineage-gap, ...
    person1_id: PersonId
    person2_id: PersonId
    attrs: dict[str, Any] = field(default_factory=dict)


def coerce_year(value: Any) -> int | None:
    """Turn a year-ish value ("1200", 1200, 1200.0) into an int, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return None


def year_or_sentinel(value: Any) -> int:
    year = coerce_year(value)
    return MISSING_YEAR if year is None else year


def couple_key(parent_id: PersonId, spouse_id: PersonId | None = None) -> tuple:
    """Stable key for a parent couple (or a single parent)."""
    if spouse_id is None:
        return (parent_id,)
    return tuple(sorted([parent_id, spouse_id], key=str))
