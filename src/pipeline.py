"""End-to-end house view: snapshot in, positions and connectors out."""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from config import LayoutConfig, ViewParameters
from errors import LayoutIssue
from fragments import Fragment, LineageGapLink, detect_fragments, find_lineage_gaps
from generations import assign_generations
from graph import RelationshipGraph
from layout import BoundingBox, Box, Connector, FragmentPlan, layout_fragments
from models import House, Person, PersonId, RelationshipEdge
from ordering import AncestryCache, PrimogenitureOrderer
from scope import HouseScope, find_root_person, resolve_house_scope

logger = logging.getLogger(__name__)


@dataclass
class FragmentSummary:
    index: int
    root_id: PersonId
    member_count: int
    bounding_box: BoundingBox | None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "root_person_id": self.root_id,
            "member_count": self.member_count,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
        }


@dataclass
class HouseLayout:
    positions: dict[PersonId, Box] = field(default_factory=dict)
    connectors: list[Connector] = field(default_factory=list)
    fragments: list[FragmentSummary] = field(default_factory=list)
    lineage_gaps: list[LineageGapLink] = field(default_factory=list)
    decorations: list = field(default_factory=list)
    issues: list[LayoutIssue] = field(default_factory=list)
    root_id: PersonId | None = None
    scope: HouseScope | None = None

    @property
    def is_empty(self) -> bool:
        return not self.positions

    @property
    def bounds(self) -> BoundingBox | None:
        return BoundingBox.around(self.positions.values())

    def to_dict(self) -> dict:
        return {
            "root_person_id": self.root_id,
            "positions": {str(pid): box.to_dict() for pid, box in self.positions.items()},
            "connectors": [c.to_dict() for c in self.connectors],
            "fragments": [f.to_dict() for f in self.fragments],
            "lineage_gaps": [
                {
                    "descendant_id": link.descendant_id,
                    "ancestor_id": link.ancestor_id,
                    "descendant_fragment": link.descendant_fragment,
                    "ancestor_fragment": link.ancestor_fragment,
                }
                for link in self.lineage_gaps
            ],
            "issues": [
                {"code": i.code, "message": i.message, "person_ids": list(i.person_ids)}
                for i in self.issues
            ],
        }


def _fragment_people(
    graph: RelationshipGraph, fragment: Fragment, scope: HouseScope, claimed: set
) -> list:
    """
    A fragment's people plus the scoped spouses of each of them.

    A spouse who belongs to any fragment, or was taken by an earlier one,
    stays where they are, so nobody is placed twice.
    """
    people = dict.fromkeys(pid for pid in fragment.person_ids if pid in scope)
    for pid in fragment.person_ids:
        spouse_id = graph.spouse_of(pid)
        if spouse_id is not None and spouse_id in scope and spouse_id not in claimed:
            people.setdefault(spouse_id, None)
    claimed.update(people)
    return list(people)


def _layout_targets(graph, scope, fragments, centre_on):
    """(index, people, root, member ids, member count) for each block to lay out."""
    if len(fragments) <= 1:
        root_id = find_root_person(graph, scope.person_ids, centre_on)
        return [(0, list(scope.person_ids), root_id, scope.member_ids, len(scope))]

    claimed = {pid for frag in fragments for pid in frag.person_ids}
    targets = []
    for frag in fragments:
        people = _fragment_people(graph, frag, scope, claimed)
        root_id = centre_on if centre_on is not None and centre_on in frag else frag.root_id
        targets.append((frag.index, people, root_id, frag.member_ids, frag.member_count))
    return targets


def _compute(persons, houses, edges, params: ViewParameters, config: LayoutConfig | None):
    houses = list(houses)
    graph = RelationshipGraph.build(persons, edges)
    layout = HouseLayout(issues=list(graph.issues))

    scope = resolve_house_scope(
        graph, houses, params.selected_house_id, params.include_cadet_houses
    )
    layout.scope = scope
    logger.info(
        "House %s: %d of %d people in scope",
        params.selected_house_id,
        len(scope),
        len(graph.people),
    )
    if not scope:
        return layout

    fragments = detect_fragments(graph, scope.member_ids)
    layout.lineage_gaps = find_lineage_gaps(graph, fragments)

    plans: list[FragmentPlan] = []
    member_counts: dict[int, int] = {}
    for index, people, root_id, member_ids, member_count in _layout_targets(
        graph, scope, fragments, params.centre_on
    ):
        generations = assign_generations(graph, people, root_id)
        layout.issues.extend(generations.issues)
        if not generations.rows:
            continue

        # One memo per (fragment, root), discarded with this call
        cache = AncestryCache(graph, people, generations.root_id, generations.root_spouse_id)
        orderer = PrimogenitureOrderer(graph, cache, generations.root_id)
        plans.append(
            FragmentPlan(
                index=index,
                generations=generations,
                allowed_ids=frozenset(people),
                orderer=orderer,
                member_ids=list(member_ids),
            )
        )
        member_counts[index] = member_count
        logger.info(
            "Fragment %d: root %s, %d generation(s)", index + 1, root_id, len(generations)
        )

    if not plans:
        return layout

    result = layout_fragments(
        plans, graph, params.layout_config(config), params.fragment_separator_style
    )
    layout.positions = result.positions
    layout.connectors = result.connectors
    layout.decorations = result.decorations
    layout.root_id = plans[0].generations.root_id
    layout.fragments = [
        FragmentSummary(
            index=plan.index,
            root_id=plan.generations.root_id,
            member_count=member_counts[plan.index],
            bounding_box=result.fragment_bounds.get(plan.index),
        )
        for plan in plans
    ]
    return layout


def compute_house_layout(
    persons: Iterable[Person],
    houses: Iterable[House],
    edges: Iterable[RelationshipEdge],
    params: ViewParameters,
    config: LayoutConfig | None = None,
) -> HouseLayout:
    """
    Compute a house view from a fresh snapshot.

    Pure and synchronous: nothing is cached between calls. Data problems
    come back as ``issues`` on the result, and any unexpected failure
    yields an empty layout with an ``internal-error`` issue rather than an
    exception.
    """
    try:
        return _compute(persons, houses, edges, params, config)
    except Exception as exc:
        logger.exception("Layout failed for house %s", params.selected_house_id)
        return HouseLayout(issues=[LayoutIssue.from_error(exc)])
