"""Data-quality checks on a relationship snapshot."""

import networkx as nx

from graph import RelationshipGraph


def _label(G: nx.DiGraph, node) -> str:
    name = G.nodes[node].get("person_name")
    return f"{name} ({node})" if name else str(node)


def validate_graph(graph: RelationshipGraph) -> list[str]:
    """
    Validate the family tree for:
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent)
    - Parents younger than 12 at a child's birth
    - Death before birth
    - Relationships that reference unknown people

    Returns a list of warning messages.
    """
    warnings: list[str] = []
    G = graph.to_networkx()

    # Create a subgraph with only PARENT_OF edges for cycle detection
    parent_edges = [
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    ]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    for parent, child in parent_edges:
        parent_birth = G.nodes[parent].get("birth_year")
        child_birth = G.nodes[child].get("birth_year")
        if not isinstance(parent_birth, int) or not isinstance(child_birth, int):
            continue

        if child_birth < parent_birth:
            warnings.append(
                f"Impossible: {_label(G, child)} born before parent {_label(G, parent)}"
            )
        elif child_birth - parent_birth < 12:
            warnings.append(
                f"Suspicious: {_label(G, parent)} was less than 12 years old "
                f"when {_label(G, child)} was born"
            )

    for node, data in G.nodes(data=True):
        birth = data.get("birth_year")
        death = data.get("death_year")
        if isinstance(birth, int) and isinstance(death, int) and death < birth:
            warnings.append(f"Impossible: {_label(G, node)} died before being born")

    for edge in graph.skipped_edges:
        warnings.append(
            f"Skipped {edge.relationship_type} relationship {edge.person1_id} -> "
            f"{edge.person2_id}: unknown person"
        )

    return warnings
