"""Tests for fragment detection and lineage-gap links."""

from builders import gap, parent, person, spouse
from fragments import build_member_adjacency, detect_fragments, find_lineage_gaps
from graph import RelationshipGraph


def two_branches(extra_edges=()):
    persons = [person("M1", 1100, "X"), person("M2", 1300, "X"), person("S2", 1302, "Y")]
    edges = [spouse("M2", "S2"), *extra_edges]
    return RelationshipGraph.build(persons, edges)


class TestDetectFragments:
    def test_disconnected_members_form_fragments(self):
        graph = two_branches()
        fragments = detect_fragments(graph, ["M2", "M1"])
        assert len(fragments) == 2
        assert [f.index for f in fragments] == [0, 1]
        assert fragments[0].root_id == "M1"
        assert fragments[1].root_id == "M2"
        assert fragments[1].person_ids == ["M2", "S2"]
        assert fragments[1].member_ids == ["M2"]
        assert fragments[1].member_count == 2
        assert "S2" in fragments[1]

    def test_shared_outsider_child_joins_members(self):
        graph = RelationshipGraph.build(
            [person("M", 1200, "X"), person("N", 1201, "X"), person("C", 1230)],
            [parent("M", "C"), parent("N", "C")],
        )
        fragments = detect_fragments(graph, ["M", "N"])
        assert len(fragments) == 1
        assert set(fragments[0].person_ids) == {"M", "N", "C"}

    def test_outsider_relatives_do_not_connect(self):
        graph = RelationshipGraph.build(
            [
                person("M", 1200, "X"),
                person("S", 1201, "Y"),
                person("T", 1225, "Y"),
                person("Q", 1250, "X"),
            ],
            [spouse("M", "S"), parent("S", "T"), parent("T", "Q")],
        )
        fragments = detect_fragments(graph, ["M", "Q"])
        assert len(fragments) == 2

    def test_root_falls_back_to_oldest_member(self):
        graph = RelationshipGraph.build(
            [person("K", 1250, "X"), person("L", 1240, "X"), person("P", 1200, "Y")],
            [parent("P", "K"), parent("P", "L")],
        )
        fragments = detect_fragments(graph, ["K", "L"])
        assert len(fragments) == 1
        assert fragments[0].root_id == "L"

    def test_no_members(self):
        assert detect_fragments(two_branches(), []) == []

    def test_adjacency_only_from_members(self):
        graph = RelationshipGraph.build(
            [person("M", 1200, "X"), person("S", 1201, "Y"), person("T", 1225, "Y")],
            [spouse("M", "S"), parent("S", "T")],
        )
        G = build_member_adjacency(graph, ["M"])
        assert set(G.nodes) == {"M", "S"}


class TestLineageGaps:
    def test_gap_between_fragments(self):
        graph = two_branches([gap("M2", "M1")])
        fragments = detect_fragments(graph, ["M1", "M2"])
        links = find_lineage_gaps(graph, fragments)
        assert len(fragments) == 2
        assert len(links) == 1
        assert links[0].descendant_id == "M2"
        assert links[0].ancestor_id == "M1"
        assert links[0].descendant_fragment == 1
        assert links[0].ancestor_fragment == 0

    def test_gap_inside_fragment_is_ignored(self):
        graph = two_branches([gap("S2", "M2")])
        fragments = detect_fragments(graph, ["M1", "M2"])
        assert find_lineage_gaps(graph, fragments) == []

    def test_gap_to_unscoped_person_is_ignored(self):
        graph = RelationshipGraph.build(
            [person("M1", 1100, "X"), person("Z", 1000, "Z")], [gap("M1", "Z")]
        )
        fragments = detect_fragments(graph, ["M1"])
        assert find_lineage_gaps(graph, fragments) == []
