"""Primogeniture ordering of branches within a generation."""

from functools import cmp_to_key
from typing import Iterable, Sequence

from graph import RelationshipGraph
from models import PersonId

# Rank used when a child is missing from the chosen parent's children
UNRANKED = 999


class AncestryCache:
    """
    Memo of "can this person be traced back to the root through parents".

    One cache belongs to exactly one (fragment, root) pair: both are fixed at
    construction and the cache is passed explicitly to whoever needs it. Make
    a new one for every layout pass.
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        allowed_ids: Iterable[PersonId],
        root_id: PersonId,
        root_spouse_id: PersonId | None = None,
    ):
        self.graph = graph
        self.allowed = frozenset(allowed_ids)
        self.root_id = root_id
        self.root_spouse_id = root_spouse_id
        self._memo: dict[PersonId, bool] = {}

    def __len__(self) -> int:
        return len(self._memo)

    def _resolved(self, person_id: PersonId) -> bool | None:
        if person_id == self.root_id or person_id == self.root_spouse_id:
            return True
        if person_id not in self.allowed or person_id not in self.graph:
            return False
        if not self.graph.has_parents(person_id):
            return False
        return None

    def can_trace(self, person_id: PersonId) -> bool:
        """True if any parent chain from person_id reaches the root (or the root's spouse)."""
        if person_id in self._memo:
            return self._memo[person_id]

        in_progress: set[PersonId] = set()
        stack: list[tuple[PersonId, bool]] = [(person_id, False)]
        while stack:
            node, expanded = stack.pop()
            if node in self._memo:
                continue
            if expanded:
                self._memo[node] = any(
                    self._memo.get(parent_id, False) for parent_id in self.graph.parents_of(node)
                )
                in_progress.discard(node)
                continue

            base = self._resolved(node)
            if base is not None:
                self._memo[node] = base
                continue
            # A node already being expanded means a cycle; it resolves to False
            if node in in_progress:
                continue
            in_progress.add(node)
            stack.append((node, True))
            for parent_id in self.graph.parents_of(node):
                if parent_id not in self._memo:
                    stack.append((parent_id, False))

        return self._memo[person_id]


def compare_order_keys(key_a: Sequence[int], key_b: Sequence[int]) -> int:
    """
    Compare two ancestral order keys position by position.

    Missing trailing positions count as 0, so [0, 1] == [0, 1, 0] and
    [0, 0] < [0, 1] < [1].
    """
    for i in range(max(len(key_a), len(key_b))):
        a = key_a[i] if i < len(key_a) else 0
        b = key_b[i] if i < len(key_b) else 0
        if a != b:
            return -1 if a < b else 1
    return 0


class PrimogenitureOrderer:
    """
    Ancestral order keys: the birth-rank path from the root down to a person.

    At each step up, a person with several recorded parents follows the one
    who traces back to the root (the blood parent), so a parent who married
    in never decides a branch's position. An elder sibling's whole subtree
    therefore sorts before a younger sibling's, whatever the birth years of
    the descendants.
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        cache: AncestryCache,
        root_id: PersonId | None = None,
    ):
        if cache.graph is not graph:
            raise ValueError("Ancestry cache was built for a different graph")
        if root_id is not None and root_id != cache.root_id:
            raise ValueError(
                f"Ancestry cache is bound to root {cache.root_id}, not {root_id}"
            )
        self.graph = graph
        self.cache = cache
        self.root_id = cache.root_id
        self.allowed = cache.allowed
        self._keys: dict[PersonId, tuple[int, ...]] = {}
        self._ranks: dict[PersonId, dict[PersonId, int]] = {}

    def blood_parent(self, person_id: PersonId) -> PersonId | None:
        parents = [pid for pid in self.graph.parents_of(person_id) if pid in self.allowed]
        if not parents:
            return None
        if len(parents) > 1:
            for parent_id in parents:
                if self.cache.can_trace(parent_id):
                    return parent_id
        return parents[0]

    def birth_rank(self, person_id: PersonId, parent_id: PersonId) -> int:
        ranks = self._ranks.get(parent_id)
        if ranks is None:
            siblings = [c for c in self.graph.children_of(parent_id) if c in self.allowed]
            siblings.sort(key=self.graph.birth_sort_year)
            ranks = {child_id: i for i, child_id in enumerate(siblings)}
            self._ranks[parent_id] = ranks
        return ranks.get(person_id, UNRANKED)

    def order_key(self, person_id: PersonId) -> tuple[int, ...]:
        if person_id in self._keys:
            return self._keys[person_id]

        path: list[PersonId] = []
        ranks: list[int] = []
        prefix: tuple[int, ...] = ()
        visited: set[PersonId] = set()
        current = person_id
        while True:
            if current in self._keys:
                prefix = self._keys[current]
                break
            if current in visited:
                break
            visited.add(current)
            parent_id = None if current == self.root_id else self.blood_parent(current)
            if parent_id is None:
                self._keys[current] = (0,)
                prefix = (0,)
                break
            path.append(current)
            ranks.append(self.birth_rank(current, parent_id))
            current = parent_id

        key = prefix
        for node, rank in zip(reversed(path), reversed(ranks)):
            key = key + (rank,)
            self._keys[node] = key
        return self._keys.get(person_id, key)

    def compare(self, a: PersonId, b: PersonId) -> int:
        return compare_order_keys(self.order_key(a), self.order_key(b))

    def sort_ids(self, person_ids: Iterable[PersonId]) -> list[PersonId]:
        """Sort ids by ancestral order key; ties keep their incoming order."""
        return sorted(person_ids, key=cmp_to_key(self.compare))
