"""Tests for the relationship adjacency maps."""

from builders import adopted, gap, parent, person, spouse
from errors import REFERENTIAL_ERROR
from graph import RelationshipGraph
from models import RelationshipEdge


class TestRelationshipGraph:
    def test_parent_and_child_maps(self):
        graph = RelationshipGraph.build(
            [person(1), person(2), person(3)], [parent(1, 3), parent(2, 3)]
        )
        assert graph.parents_of(3) == [1, 2]
        assert graph.children_of(1) == [3]
        assert graph.children_of(2) == [3]
        assert graph.parents_of(1) == []
        assert not graph.has_parents(1)

    def test_adopted_parent_counts_as_parent(self):
        graph = RelationshipGraph.build([person(1), person(2)], [adopted(1, 2)])
        assert graph.parents_of(2) == [1]
        assert graph.is_adopted_by(1, 2)
        assert not graph.is_adopted_by(2, 1)

    def test_duplicate_parent_edges_collapse(self):
        graph = RelationshipGraph.build([person(1), person(2)], [parent(1, 2), parent(1, 2)])
        assert graph.parents_of(2) == [1]
        assert graph.children_of(1) == [2]

    def test_spouse_is_symmetric(self):
        graph = RelationshipGraph.build([person(1), person(2)], [spouse(1, 2)])
        assert graph.spouse_of(1) == 2
        assert graph.spouse_of(2) == 1
        assert graph.spouse_of(None) is None

    def test_unknown_ids_are_skipped(self):
        graph = RelationshipGraph.build(
            [person(1), person(2)], [parent(1, 99), spouse(98, 2), parent(1, 2)]
        )
        assert graph.children_of(1) == [2]
        assert graph.spouse_of(2) is None
        assert len(graph.skipped_edges) == 2
        assert [issue.code for issue in graph.issues] == [REFERENTIAL_ERROR, REFERENTIAL_ERROR]

    def test_unrelated_edge_types_are_ignored(self):
        edge = RelationshipEdge("named-after", 1, 2)
        graph = RelationshipGraph.build([person(1), person(2)], [edge])
        assert graph.skipped_edges == []
        assert graph.parents_of(2) == []

    def test_lineage_gaps_are_collected(self):
        graph = RelationshipGraph.build([person(1), person(2)], [gap(2, 1)])
        assert len(graph.lineage_gaps) == 1
        assert graph.parents_of(2) == []


class TestSpouseResolution:
    def test_most_recent_marriage_wins(self):
        persons = [person("A"), person("B"), person("C")]
        graph = RelationshipGraph.build(persons, [spouse("A", "C", 1220), spouse("A", "B", 1200)])
        assert graph.spouse_of("A") == "C"
        assert graph.spouses_of("A") == ["C", "B"]
        assert graph.spouse_of("B") == "A"

    def test_edge_order_does_not_matter(self):
        persons = [person("A"), person("B"), person("C")]
        first = RelationshipGraph.build(persons, [spouse("A", "B", 1200), spouse("A", "C", 1220)])
        second = RelationshipGraph.build(persons, [spouse("A", "C", 1220), spouse("A", "B", 1200)])
        assert first.spouse_of("A") == second.spouse_of("A") == "C"

    def test_undated_marriages_break_ties_by_id(self):
        persons = [person("A"), person("C"), person("B")]
        graph = RelationshipGraph.build(persons, [spouse("A", "C"), spouse("A", "B")])
        assert graph.spouse_of("A") == "B"

    def test_dated_marriage_beats_undated(self):
        persons = [person("A"), person("B"), person("C")]
        graph = RelationshipGraph.build(persons, [spouse("A", "B", 1190), spouse("A", "C")])
        assert graph.spouse_of("A") == "B"


class TestNetworkxExport:
    def test_to_networkx(self):
        graph = RelationshipGraph.build(
            [person(1, 1200), person(2), person(3)], [parent(1, 3), spouse(1, 2)]
        )
        G = graph.to_networkx()
        assert G.number_of_nodes() == 3
        assert G.edges[1, 3]["relationship_type"] == "PARENT_OF"
        assert G.edges[1, 2]["relationship_type"] == "SPOUSE_OF"
        assert G.edges[2, 1]["relationship_type"] == "SPOUSE_OF"
        assert G.nodes[1]["birth_year"] == 1200
