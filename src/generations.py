"""Generation layering from a single root."""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import networkx as nx

from errors import CycleAssumptionViolation, LayoutIssue, NoRootError
from graph import RelationshipGraph
from models import PersonId

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    rows: list[list[PersonId]] = field(default_factory=list)  # discovery order
    issues: list[LayoutIssue] = field(default_factory=list)
    root_spouse_id: PersonId | None = None

    @property
    def generations(self) -> list[set[PersonId]]:
        return [set(row) for row in self.rows]

    @property
    def root_id(self) -> PersonId | None:
        return self.rows[0][0] if self.rows else None

    def generation_of(self, person_id: PersonId) -> int | None:
        for depth, row in enumerate(self.rows):
            if person_id in row:
                return depth
        return None

    def __len__(self) -> int:
        return len(self.rows)


def _lineage_graph(graph: RelationshipGraph, allowed: set) -> nx.DiGraph:
    """Parent -> child edges among the allowed people."""
    G = nx.DiGraph()
    G.add_nodes_from(allowed)
    for child_id in allowed:
        for parent_id in graph.parents_of(child_id):
            if parent_id in allowed:
                G.add_edge(parent_id, child_id)
    return G


def assign_generations(
    graph: RelationshipGraph, allowed_ids: Iterable[PersonId], root_id: PersonId | None
) -> GenerationResult:
    """
    Layer people into generations by breadth-first descent from one root.

    Generation 0 is exactly the root; the root's spouse sits beside them and
    is never placed again. Each later generation holds the children of the
    previous generation's people and of their spouses. The first generation a
    person is discovered in is final.

    A child that is already placed and is also an ancestor of the parent
    being expanded means the input has an ancestry cycle. The traversal
    skips the child, as it does every placed person, and reports the cycle
    as an issue.

    Args:
        graph: Relationship maps for the snapshot
        allowed_ids: The fragment (or scope) being layered
        root_id: The person for generation 0

    Returns:
        A GenerationResult; empty with a no-root issue if the root is unusable
    """
    allowed = set(allowed_ids)
    result = GenerationResult()

    if root_id is None or root_id not in allowed or root_id not in graph:
        if allowed:
            error = NoRootError(f"No usable root among {len(allowed)} scoped people")
            result.issues.append(LayoutIssue.from_error(error))
            logger.warning(str(error))
        return result

    depth_of: dict[PersonId, int] = {root_id: 0}
    result.rows.append([root_id])

    root_spouse_id = graph.spouse_of(root_id)
    if root_spouse_id is not None and root_spouse_id in allowed:
        depth_of[root_spouse_id] = 0
        result.root_spouse_id = root_spouse_id

    reported: set[frozenset] = set()
    lineage: nx.DiGraph | None = None
    depth = 0
    while depth < len(result.rows):
        next_row: list[PersonId] = []
        for person_id in result.rows[depth]:
            spouse_id = graph.spouse_of(person_id)
            candidates = list(graph.children_of(person_id))
            if spouse_id is not None and spouse_id in allowed:
                candidates.extend(graph.children_of(spouse_id))

            for child_id in candidates:
                if child_id not in allowed:
                    continue
                if child_id not in depth_of:
                    depth_of[child_id] = depth + 1
                    next_row.append(child_id)
                    continue

                if depth_of[child_id] > depth:
                    continue
                if child_id != person_id:
                    if lineage is None:
                        lineage = _lineage_graph(graph, allowed)
                    if not nx.has_path(lineage, child_id, person_id):
                        continue

                key = frozenset((child_id, person_id))
                if key in reported:
                    continue
                reported.add(key)
                error = CycleAssumptionViolation(
                    f"Ancestry cycle: {child_id} is both an ancestor and a child of {person_id}",
                    person_ids=(child_id, person_id),
                )
                result.issues.append(LayoutIssue.from_error(error))
                logger.warning(str(error))

        if next_row:
            result.rows.append(next_row)
        depth += 1

    logger.debug(
        "Generations from root %s: %s",
        root_id,
        ", ".join(f"gen {i}: {len(row)}" for i, row in enumerate(result.rows)),
    )
    return result
