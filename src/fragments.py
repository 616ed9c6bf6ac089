"""Fragment detection: disconnected sub-lineages within a house."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import networkx as nx

from graph import RelationshipGraph
from models import PersonId
from scope import find_root_person

logger = logging.getLogger(__name__)


@dataclass
class Fragment:
    index: int
    person_ids: list[PersonId]
    member_ids: list[PersonId]
    root_id: PersonId

    @property
    def member_count(self) -> int:
        return len(self.person_ids)

    def __contains__(self, person_id) -> bool:
        return person_id in self.person_ids


@dataclass
class LineageGapLink:
    """An advisory lineage-gap edge whose two ends sit in different fragments."""

    descendant_id: PersonId
    ancestor_id: PersonId
    descendant_fragment: int
    ancestor_fragment: int
    attrs: dict[str, Any] = field(default_factory=dict)


def build_member_adjacency(graph: RelationshipGraph, member_ids: Iterable[PersonId]) -> nx.Graph:
    """
    Undirected adjacency from house members to their spouse, parents and children.

    Non-members only appear as neighbours of a member, so connectivity never
    runs through an outsider's own relatives.
    """
    G = nx.Graph()
    members = [pid for pid in member_ids if pid in graph]
    G.add_nodes_from(members)
    for pid in members:
        spouse_id = graph.spouse_of(pid)
        if spouse_id is not None:
            G.add_edge(pid, spouse_id)
        for parent_id in graph.parents_of(pid):
            G.add_edge(pid, parent_id)
        for child_id in graph.children_of(pid):
            G.add_edge(pid, child_id)
    return G


def detect_fragments(graph: RelationshipGraph, member_ids: Iterable[PersonId]) -> list[Fragment]:
    """
    Partition house members into connected fragments.

    Each fragment's root is its oldest member with no recorded parents, or
    its oldest member if every member has a parent on record. Fragments are
    returned oldest root first; index 0 is the main fragment.
    """
    members = [pid for pid in member_ids if pid in graph]
    if not members:
        return []

    G = build_member_adjacency(graph, members)
    position = {node: i for i, node in enumerate(G.nodes)}
    member_set = set(members)

    found = []
    for component in nx.connected_components(G):
        person_ids = sorted(component, key=position.__getitem__)
        fragment_members = [pid for pid in person_ids if pid in member_set]
        root_id = find_root_person(graph, fragment_members)
        found.append((person_ids, fragment_members, root_id))

    found.sort(key=lambda item: graph.birth_sort_year(item[2]))
    fragments = [
        Fragment(index=i, person_ids=person_ids, member_ids=fragment_members, root_id=root_id)
        for i, (person_ids, fragment_members, root_id) in enumerate(found)
    ]

    if len(fragments) > 1:
        logger.info("Detected %d fragments", len(fragments))
        for frag in fragments:
            logger.info(
                "  Fragment %d: %d people, root %s (b. %s)",
                frag.index + 1,
                frag.member_count,
                frag.root_id,
                graph.person(frag.root_id).birth_year,
            )
    return fragments


def find_lineage_gaps(graph: RelationshipGraph, fragments: list[Fragment]) -> list[LineageGapLink]:
    """
    Lineage-gap edges connecting people in two different fragments.

    These are annotations only; they never merge fragments.
    """
    fragment_of: dict[PersonId, int] = {}
    for frag in fragments:
        for pid in frag.person_ids:
            fragment_of.setdefault(pid, frag.index)

    links = []
    for edge in graph.lineage_gaps:
        descendant_fragment = fragment_of.get(edge.person1_id)
        ancestor_fragment = fragment_of.get(edge.person2_id)
        if descendant_fragment is None or ancestor_fragment is None:
            continue
        if descendant_fragment == ancestor_fragment:
            continue
        links.append(
            LineageGapLink(
                descendant_id=edge.person1_id,
                ancestor_id=edge.person2_id,
                descendant_fragment=descendant_fragment,
                ancestor_fragment=ancestor_fragment,
                attrs=dict(edge.attrs),
            )
        )
    if links:
        logger.info("%d lineage-gap connection(s) between fragments", len(links))
    return links
