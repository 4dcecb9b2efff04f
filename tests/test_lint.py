"""Tests for lint rules."""

from litgraph.core.model import Location
from litgraph.lint import CircularReferencesRule, UndefinedReferencesRule, run_lint


def test_clean_document(engine, md):
    engine.parse_document("doc.md", md("a", "<<b>>") + md("b", "x"))
    assert run_lint(engine) == []


def test_undefined_reference_points_at_marker(engine, md):
    engine.parse_document("doc.md", md("a", "call(<<missing>>)"))

    findings = UndefinedReferencesRule().check(engine)

    assert len(findings) == 1
    finding = findings[0]
    assert finding.severity == "error"
    assert finding.message == "Unknown block <<missing>> in #a"
    assert type(finding.location) is Location
    assert finding.location.span.start.line == 1
    assert finding.location.span.start.character == 5


def test_circular_reference_warning(engine, md):
    engine.parse_document("doc.md", md("x", "<<y>>") + md("y", "<<x>>"))

    findings = CircularReferencesRule().check(engine)

    assert [(f.severity, f.message) for f in findings] == [
        ("warn", "Circular reference detected: x -> y -> x")
    ]
    assert findings[0].location == engine.find_definition("x")


def test_run_lint_with_selected_rules(engine, md):
    engine.parse_document("doc.md", md("x", "<<x>> <<gone>>"))

    assert len(run_lint(engine)) == 2
    assert len(run_lint(engine, rules=[CircularReferencesRule()])) == 1
