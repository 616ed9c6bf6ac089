"""House scope: which people a house view shows."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from graph import RelationshipGraph
from models import House, HouseId, PersonId

logger = logging.getLogger(__name__)


@dataclass
class HouseScope:
    house_ids: set[HouseId]
    member_ids: list[PersonId] = field(default_factory=list)
    person_ids: list[PersonId] = field(default_factory=list)

    def __post_init__(self):
        self._members = set(self.member_ids)
        self._persons = set(self.person_ids)

    def __contains__(self, person_id) -> bool:
        return person_id in self._persons

    def __len__(self) -> int:
        return len(self.person_ids)

    def is_member(self, person_id: PersonId) -> bool:
        return person_id in self._members


def houses_in_scope(
    target_house_id: HouseId, houses: Iterable[House], include_cadets: bool
) -> set[HouseId]:
    """
    The selected house plus, optionally, its direct cadet houses.

    Only one level of cadets is included: a cadet of a cadet is not.
    """
    house_ids = {target_house_id}
    if include_cadets:
        for house in houses:
            if house.is_cadet and house.parent_house_id == target_house_id:
                house_ids.add(house.id)
    return house_ids


def resolve_house_scope(
    graph: RelationshipGraph,
    houses: Iterable[House],
    target_house_id: HouseId,
    include_cadets: bool = True,
) -> HouseScope:
    """
    Collect the people shown for a house view.

    Traversal rules:
    - Direct members of the in-scope houses are always included.
    - Ancestors are walked upward from every member, but the walk only
      continues past an ancestor who is a house member. A non-member parent
      is shown, their own parents are not.
    - Spouses of every included member, ancestor and descendant are shown
      but never traversed.
    - Descendants are walked breadth-first and the walk only continues
      through house members. A non-member child is shown as an immediate
      child; their children are not (one generation of outsiders).

    Args:
        graph: Relationship maps for the snapshot
        houses: All houses in the snapshot
        target_house_id: The house being viewed
        include_cadets: Whether direct cadet houses count as members

    Returns:
        A HouseScope with member ids and the full ordered set of shown ids
    """
    house_ids = houses_in_scope(target_house_id, houses, include_cadets)

    def is_member(person_id: PersonId) -> bool:
        person = graph.person(person_id)
        return person is not None and person.house_id in house_ids

    members = [pid for pid, p in graph.people.items() if p.house_id in house_ids]

    # dict keeps insertion order, so the scope is deterministic
    scoped: dict[PersonId, None] = {}

    def admit(person_id: PersonId | None):
        if person_id is not None and person_id in graph:
            scoped.setdefault(person_id, None)

    for pid in members:
        admit(pid)
    for pid in members:
        admit(graph.spouse_of(pid))

    # Ancestors
    visited_up: set[PersonId] = set()
    for pid in members:
        stack = [pid]
        while stack:
            current = stack.pop()
            if current in visited_up:
                continue
            visited_up.add(current)
            for parent_id in graph.parents_of(current):
                admit(parent_id)
                admit(graph.spouse_of(parent_id))
                if is_member(parent_id):
                    stack.append(parent_id)

    # Descendants
    visited_down: set[PersonId] = set()
    queue = deque(members)
    while queue:
        current = queue.popleft()
        if current in visited_down:
            continue
        visited_down.add(current)
        if not is_member(current):
            continue
        for child_id in graph.children_of(current):
            admit(child_id)
            admit(graph.spouse_of(child_id))
            queue.append(child_id)

    scope = HouseScope(house_ids=house_ids, member_ids=members, person_ids=list(scoped))
    logger.debug(
        "House %s scope: %d members, %d people shown (houses %s)",
        target_house_id,
        len(members),
        len(scope),
        sorted(house_ids, key=str),
    )
    return scope


def oldest_first(graph: RelationshipGraph, person_ids: Iterable[PersonId]) -> list[PersonId]:
    """Sort by birth year, missing years first; stable for equal years."""
    return sorted(person_ids, key=graph.birth_sort_year)


def find_root_person(
    graph: RelationshipGraph,
    person_ids: Iterable[PersonId],
    centre_on: PersonId | None = None,
) -> PersonId | None:
    """
    Pick the root for a view.

    Priority:
    1. The explicit centre-on person, if they are in the given set
    2. The oldest person in the set with no recorded parents
    3. The oldest person in the set
    """
    candidates = [pid for pid in person_ids if pid in graph]
    if centre_on is not None and centre_on in candidates:
        return centre_on
    if not candidates:
        return None

    parentless = [pid for pid in candidates if not graph.has_parents(pid)]
    if parentless:
        return oldest_first(graph, parentless)[0]
    return oldest_first(graph, candidates)[0]


def house_members_by_age(
    graph: RelationshipGraph,
    houses: Iterable[House],
    target_house_id: HouseId,
    include_cadets: bool = True,
) -> list[PersonId]:
    """Direct members of the in-scope houses, oldest first (the centre-on choices)."""
    house_ids = houses_in_scope(target_house_id, houses, include_cadets)
    members = [pid for pid, p in graph.people.items() if p.house_id in house_ids]
    return oldest_first(graph, members)
