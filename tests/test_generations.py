"""Tests for generation layering."""

from builders import parent, person, scenario_a, spouse
from errors import CYCLE_ASSUMPTION_VIOLATION, NO_ROOT
from generations import assign_generations
from graph import RelationshipGraph


def build(persons, edges):
    graph = RelationshipGraph.build(persons, edges)
    return graph, list(graph.people)


class TestAssignGenerations:
    def test_generation_zero_is_the_root(self):
        persons, _, edges = scenario_a()
        graph, allowed = build(persons, edges)
        result = assign_generations(graph, allowed, "R")
        assert result.rows == [["R"], ["A", "B"], ["A1", "B1"]]
        assert result.root_id == "R"
        assert result.issues == []

    def test_every_child_one_below_parent(self):
        persons, _, edges = scenario_a()
        graph, allowed = build(persons, edges)
        result = assign_generations(graph, allowed, "R")
        for edge in edges:
            assert result.generation_of(edge.person2_id) == result.generation_of(edge.person1_id) + 1

    def test_root_spouse_not_in_any_row(self):
        graph, allowed = build(
            [person("R", 1200), person("S", 1205), person("C", 1230)],
            [spouse("R", "S"), parent("R", "C"), parent("S", "C")],
        )
        result = assign_generations(graph, allowed, "R")
        assert result.rows == [["R"], ["C"]]
        assert result.root_spouse_id == "S"
        assert result.generation_of("S") is None

    def test_spouse_only_children_are_reached(self):
        graph, allowed = build(
            [person("R", 1200), person("S", 1205), person("C", 1230)],
            [spouse("R", "S"), parent("S", "C")],
        )
        result = assign_generations(graph, allowed, "R")
        assert result.generation_of("C") == 1

    def test_first_discovery_wins(self):
        graph, allowed = build(
            [person("R"), person("A"), person("G")],
            [parent("R", "A"), parent("R", "G"), parent("A", "G")],
        )
        result = assign_generations(graph, allowed, "R")
        assert result.generation_of("G") == 1
        assert result.rows == [["R"], ["A", "G"]]

    def test_people_outside_allowed_set_are_skipped(self):
        persons, _, edges = scenario_a()
        graph, _ = build(persons, edges)
        result = assign_generations(graph, ["R", "A", "A1"], "R")
        assert result.rows == [["R"], ["A"], ["A1"]]

    def test_cousin_marriage_is_not_a_cycle(self):
        graph, allowed = build(
            [person(p) for p in ("R", "A", "B", "X", "Q", "Y", "K")],
            [
                parent("R", "A"),
                parent("R", "B"),
                parent("A", "X"),
                parent("B", "Q"),
                parent("Q", "Y"),
                spouse("X", "Y"),
                parent("X", "K"),
                parent("Y", "K"),
            ],
        )
        result = assign_generations(graph, allowed, "R")
        assert result.issues == []
        assert result.generation_of("K") == 3
        assert result.generation_of("Y") == 3


class TestGenerationIssues:
    def test_ancestry_cycle_is_reported(self):
        graph, allowed = build(
            [person("R"), person("A"), person("B")],
            [parent("R", "A"), parent("A", "B"), parent("B", "A")],
        )
        result = assign_generations(graph, allowed, "R")
        assert result.rows == [["R"], ["A"], ["B"]]
        assert [issue.code for issue in result.issues] == [CYCLE_ASSUMPTION_VIOLATION]
        assert set(result.issues[0].person_ids) == {"A", "B"}

    def test_self_parent_is_reported(self):
        graph, allowed = build([person("R"), person("C")], [parent("R", "R"), parent("R", "C")])
        result = assign_generations(graph, allowed, "R")
        assert result.rows == [["R"], ["C"]]
        assert [issue.code for issue in result.issues] == [CYCLE_ASSUMPTION_VIOLATION]

    def test_missing_root(self):
        graph, allowed = build([person("R")], [])
        result = assign_generations(graph, allowed, None)
        assert result.rows == []
        assert [issue.code for issue in result.issues] == [NO_ROOT]

    def test_root_outside_allowed_set(self):
        graph, _ = build([person("R"), person("A")], [])
        result = assign_generations(graph, ["A"], "R")
        assert len(result) == 0
        assert result.issues[0].code == NO_ROOT

    def test_empty_set_is_quiet(self):
        graph, _ = build([person("R")], [])
        result = assign_generations(graph, [], None)
        assert result.rows == []
        assert result.issues == []


def test_long_ancestry_cycle_is_reported():
    graph, allowed = build(
        [person(p) for p in ("R", "A", "B", "C")],
        [parent("R", "A"), parent("A", "B"), parent("B", "C"), parent("C", "A")],
    )
    result = assign_generations(graph, allowed, "R")
    assert result.rows == [["R"], ["A"], ["B"], ["C"]]
    assert [issue.code for issue in result.issues] == [CYCLE_ASSUMPTION_VIOLATION]
    assert set(result.issues[0].person_ids) == {"A", "C"}
