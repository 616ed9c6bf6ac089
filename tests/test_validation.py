"""Tests for snapshot data-quality warnings."""

from builders import parent, person
from graph import RelationshipGraph
from validation import validate_graph


def warnings_for(persons, edges):
    return validate_graph(RelationshipGraph.build(persons, edges))


class TestValidateGraph:
    def test_clean_graph(self):
        assert warnings_for([person("P", 1200), person("C", 1230)], [parent("P", "C")]) == []

    def test_cycle(self):
        warnings = warnings_for([person("A"), person("B")], [parent("A", "B"), parent("B", "A")])
        assert any(w.startswith("Cycle detected") for w in warnings)

    def test_child_born_before_parent(self):
        warnings = warnings_for([person("P", 1200), person("C", 1190)], [parent("P", "C")])
        assert warnings == ["Impossible: C (C) born before parent P (P)"]

    def test_young_parent(self):
        warnings = warnings_for([person("P", 1200), person("C", 1205)], [parent("P", "C")])
        assert len(warnings) == 1
        assert warnings[0].startswith("Suspicious")

    def test_death_before_birth(self):
        warnings = warnings_for([person("P", 1200, died=1150)], [])
        assert warnings == ["Impossible: P (P) died before being born"]

    def test_skipped_edges(self):
        warnings = warnings_for([person("P", 1200)], [parent("P", "ghost")])
        assert warnings == ["Skipped parent relationship P -> ghost: unknown person"]
