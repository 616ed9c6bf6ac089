"""Relationship adjacency maps and NetworkX graph building."""

import logging
from typing import Iterable

import networkx as nx

from errors import LayoutIssue, ReferentialError
from models import (
    ADOPTED_PARENT,
    LINEAGE_GAP,
    PARENT_TYPES,
    SPOUSE,
    Person,
    PersonId,
    RelationshipEdge,
    year_or_sentinel,
)

logger = logging.getLogger(__name__)


class RelationshipGraph:
    """
    Lookup maps over one snapshot of people and relationship edges.

    Built in a single pass over the edge list; every lookup afterwards is a
    dict access. Edges that reference unknown person ids are skipped and
    recorded in ``skipped_edges`` / ``issues``.
    """

    def __init__(self, persons: Iterable[Person]):
        self.people: dict[PersonId, Person] = {}
        for p in persons:
            self.people[p.id] = p
        self._parents: dict[PersonId, list[PersonId]] = {}
        self._children: dict[PersonId, list[PersonId]] = {}
        self._spouses: dict[PersonId, list[tuple[int, PersonId]]] = {}
        self._adopted: set[tuple[PersonId, PersonId]] = set()
        self.lineage_gaps: list[RelationshipEdge] = []
        self.skipped_edges: list[RelationshipEdge] = []
        self.issues: list[LayoutIssue] = []

    @classmethod
    def build(
        cls, persons: Iterable[Person], edges: Iterable[RelationshipEdge]
    ) -> "RelationshipGraph":
        graph = cls(persons)
        for edge in edges:
            graph._add_edge(edge)
        for spouses in graph._spouses.values():
            # Latest marriage first; ties by id so edge order never matters
            spouses.sort(key=lambda item: str(item[1]))
            spouses.sort(key=lambda item: item[0], reverse=True)
        if graph.skipped_edges:
            logger.warning(
                "Skipped %d relationship(s) referencing unknown people",
                len(graph.skipped_edges),
            )
        return graph

    def _add_edge(self, edge: RelationshipEdge):
        rel_type = edge.relationship_type
        if rel_type not in PARENT_TYPES and rel_type not in (SPOUSE, LINEAGE_GAP):
            return

        a, b = edge.person1_id, edge.person2_id
        missing = [pid for pid in (a, b) if pid not in self.people]
        if missing:
            error = ReferentialError(
                f"{rel_type} relationship {a} -> {b} references unknown person(s) {missing}",
                person_ids=missing,
            )
            self.skipped_edges.append(edge)
            self.issues.append(LayoutIssue.from_error(error))
            logger.debug(str(error))
            return

        if rel_type == SPOUSE:
            if a == b:
                return
            year = year_or_sentinel(edge.attrs.get("marriage_year"))
            self._link_spouse(a, b, year)
            self._link_spouse(b, a, year)
        elif rel_type == LINEAGE_GAP:
            self.lineage_gaps.append(edge)
        else:
            # person1 is the parent, person2 the child
            parents = self._parents.setdefault(b, [])
            if a not in parents:
                parents.append(a)
                self._children.setdefault(a, []).append(b)
            if rel_type == ADOPTED_PARENT:
                self._adopted.add((a, b))

    def _link_spouse(self, person_id: PersonId, spouse_id: PersonId, year: int):
        entries = self._spouses.setdefault(person_id, [])
        for i, (existing_year, existing_id) in enumerate(entries):
            if existing_id == spouse_id:
                entries[i] = (max(existing_year, year), spouse_id)
                return
        entries.append((year, spouse_id))

    def person(self, person_id: PersonId) -> Person | None:
        return self.people.get(person_id)

    def __contains__(self, person_id) -> bool:
        return person_id in self.people

    def parents_of(self, person_id: PersonId) -> list[PersonId]:
        return self._parents.get(person_id, [])

    def children_of(self, person_id: PersonId | None) -> list[PersonId]:
        if person_id is None:
            return []
        return self._children.get(person_id, [])

    def has_parents(self, person_id: PersonId) -> bool:
        return bool(self._parents.get(person_id))

    def spouse_of(self, person_id: PersonId | None) -> PersonId | None:
        """The single current spouse: the most recent marriage on record."""
        if person_id is None:
            return None
        entries = self._spouses.get(person_id)
        return entries[0][1] if entries else None

    def spouses_of(self, person_id: PersonId) -> list[PersonId]:
        return [spouse_id for _, spouse_id in self._spouses.get(person_id, [])]

    def is_adopted_by(self, parent_id: PersonId, child_id: PersonId) -> bool:
        return (parent_id, child_id) in self._adopted

    def birth_sort_year(self, person_id: PersonId) -> int:
        person = self.people.get(person_id)
        return person.sort_year if person else year_or_sentinel(None)

    def to_networkx(self) -> nx.DiGraph:
        """Build a NetworkX directed graph (PARENT_OF parent -> child, SPOUSE_OF both ways)."""
        G = nx.DiGraph()
        for pid, p in self.people.items():
            G.add_node(
                pid,
                person_name=p.name,
                birth_year=p.birth_year,
                death_year=p.death_year,
                house_id=p.house_id,
                legitimacy_status=p.legitimacy_status,
            )
        for child, parents in self._parents.items():
            for parent in parents:
                G.add_edge(parent, child, relationship_type="PARENT_OF")
        for pid, entries in self._spouses.items():
            for _, spouse_id in entries:
                G.add_edge(pid, spouse_id, relationship_type="SPOUSE_OF")
        return G
