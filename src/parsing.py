"""Snapshot loaders: JSON exports and GEDCOM files."""

import json
import re
from pathlib import Path
from typing import Any

from ged4py import GedcomReader

from models import (
    LEGITIMATE,
    LEGITIMACY_STATUSES,
    PARENT,
    SPOUSE,
    UNKNOWN,
    House,
    Person,
    RelationshipEdge,
    coerce_year,
)

Snapshot = tuple[list[Person], list[House], list[RelationshipEdge]]

QUALIFIER_RE = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND|C\.):?\s*",
    flags=re.IGNORECASE,
)


def _pick(record: dict, *keys: str, default: Any = None) -> Any:
    """First present key, so exports in camelCase and snake_case both load."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def parse_year(date_str: Any) -> int | None:
    """
    Pull a year out of a free-form date value.

    Handles ints, "1200", "ABT 1200", "25 NOV 1954", "(1789?)" and the like.
    Returns None when no year can be found.
    """
    year = coerce_year(date_str)
    if year is not None or date_str is None:
        return year

    s = str(date_str).strip().strip("()").rstrip("?")
    s = QUALIFIER_RE.sub("", s).strip()
    match = re.search(r"(\d{4})(?!.*\d{4})", s)
    if match:
        return int(match.group(1))
    match = re.fullmatch(r"\d{1,3}", s)
    return int(s) if match else None


def person_from_dict(record: dict) -> Person:
    status = _pick(record, "legitimacy_status", "legitimacyStatus", default=LEGITIMATE)
    if status not in LEGITIMACY_STATUSES:
        status = UNKNOWN
    name = _pick(record, "name")
    if name is None:
        parts = [_pick(record, "first_name", "firstName"), _pick(record, "last_name", "lastName")]
        name = " ".join(p for p in parts if p) or None
    return Person(
        id=record["id"],
        name=name,
        birth_year=parse_year(_pick(record, "birth_year", "birthYear", "dateOfBirth")),
        death_year=parse_year(_pick(record, "death_year", "deathYear", "dateOfDeath")),
        house_id=_pick(record, "house_id", "houseId"),
        legitimacy_status=status,
    )


def house_from_dict(record: dict) -> House:
    return House(
        id=record["id"],
        name=_pick(record, "name", "houseName"),
        parent_house_id=_pick(record, "parent_house_id", "parentHouseId"),
    )


def edge_from_dict(record: dict) -> RelationshipEdge:
    known = {
        "id",
        "relationship_type",
        "relationshipType",
        "type",
        "person1_id",
        "person1Id",
        "person2_id",
        "person2Id",
    }
    attrs = dict(record.get("attrs") or {})
    attrs.update({k: v for k, v in record.items() if k not in known and k != "attrs"})
    if "marriage_year" not in attrs:
        marriage = _pick(record, "marriageDate", "marriage_date")
        if marriage is not None:
            attrs["marriage_year"] = parse_year(marriage)
    return RelationshipEdge(
        relationship_type=_pick(record, "relationship_type", "relationshipType", "type"),
        person1_id=_pick(record, "person1_id", "person1Id"),
        person2_id=_pick(record, "person2_id", "person2Id"),
        attrs=attrs,
    )


def load_json_snapshot(filepath: Path) -> Snapshot:
    """Load people, houses and relationships from a JSON export."""
    data = json.loads(Path(filepath).read_text(encoding="utf-8"))
    persons = [person_from_dict(p) for p in data.get("persons") or data.get("people") or []]
    houses = [house_from_dict(h) for h in data.get("houses") or []]
    edges = [edge_from_dict(r) for r in data.get("relationships") or []]
    return persons, houses, edges


# ============================================================================
# GEDCOM
# ============================================================================


def extract_numeric_id(xref_id: str) -> int:
    """Extract numeric part from GEDCOM xref_id like '@I_347421849@' or 'I674624289'."""
    digits = re.sub(r"[^0-9]", "", xref_id)
    if not digits:
        raise ValueError(f"No numeric ID found in: {xref_id}")
    return int(digits)


def parse_gedcom(filepath: Path) -> GedcomReader:
    """Parse a GEDCOM file and return the reader object."""
    return GedcomReader(str(filepath))


def extract_name_parts(indi) -> tuple[str, str | None]:
    """Extract full name and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return ("Unknown", None)

    name_value = name_rec.value
    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        given, surname, suffix = name_value
        parts = [p for p in [given, surname, suffix] if p]
        return (" ".join(parts) if parts else "Unknown", surname or None)

    full_name = str(name_value).replace("/", "").strip() or "Unknown"
    surn = name_rec.sub_tag("SURN")
    return (full_name, surn.value if surn else None)


def extract_event_year(rec, tag: str) -> int | None:
    """Year of an event tag (BIRT, DEAT, MARR)."""
    event = rec.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    if date_rec is None or not date_rec.value:
        return None
    # ged4py may return DateValue objects
    return parse_year(str(date_rec.value))


def normalize_gedcom(reader: GedcomReader) -> Snapshot:
    """
    Turn GEDCOM records into a snapshot.

    Each surname becomes a house. FAM records give spouse edges (with the
    marriage year when known) and parent edges from HUSB/WIFE to CHIL.
    """
    persons: list[Person] = []
    houses: dict[str, House] = {}
    edges: list[RelationshipEdge] = []

    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue
        full_name, surname = extract_name_parts(rec)
        if surname and surname not in houses:
            houses[surname] = House(id=surname, name=surname)
        persons.append(
            Person(
                id=extract_numeric_id(rec.xref_id),
                name=full_name,
                birth_year=extract_event_year(rec, "BIRT"),
                death_year=extract_event_year(rec, "DEAT"),
                house_id=surname,
            )
        )

    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue
        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")
        husb_id = extract_numeric_id(husb.xref_id) if husb and husb.xref_id else None
        wife_id = extract_numeric_id(wife.xref_id) if wife and wife.xref_id else None

        if husb_id and wife_id:
            edges.append(
                RelationshipEdge(
                    SPOUSE, husb_id, wife_id, {"marriage_year": extract_event_year(rec, "MARR")}
                )
            )
        for child in rec.sub_tags("CHIL"):
            if not child.xref_id:
                continue
            child_id = extract_numeric_id(child.xref_id)
            for parent_id in (husb_id, wife_id):
                if parent_id:
                    edges.append(RelationshipEdge(PARENT, parent_id, child_id))

    return persons, list(houses.values()), edges


def load_snapshot(filepath: Path) -> Snapshot:
    """Load a snapshot from .json or .ged by extension."""
    filepath = Path(filepath)
    if filepath.suffix.lower() == ".ged":
        return normalize_gedcom(parse_gedcom(filepath))
    return load_json_snapshot(filepath)
