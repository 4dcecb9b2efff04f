from dataclasses import dataclass
from typing import Protocol
from .core.engine import LiterateEngine
from .core.errors import CircularReferenceError
from .core.model import Location


@dataclass
class Finding:
    severity: str  # "info" | "warn" | "error"
    message: str
    location: Location | None = None


class LintRule(Protocol):
    id: str

    def check(self, engine: LiterateEngine) -> list[Finding]:
        pass


class UndefinedReferencesRule:
    id = "undefined-references"

    def check(self, engine: LiterateEngine) -> list[Finding]:
        out: list[Finding] = []
        registry = engine.registry
        for block in registry.blocks():
            for ref in block.references:
                if ref in registry:
                    continue
                spans = [s for name, s in block.location.reference_spans if name == ref]
                location = Location(block.document_id, spans[0]) if spans else block.location
                out.append(
                    Finding("error", f"Unknown block <<{ref}>> in #{block.identifier}", location)
                )
        return out


class CircularReferencesRule:
    id = "circular-references"

    def check(self, engine: LiterateEngine) -> list[Finding]:
        return [
            Finding(
                "warn",
                str(CircularReferenceError(cycle.path)),
                engine.find_definition(cycle.start),
            )
            for cycle in engine.find_circular_references()
        ]


DEFAULT_RULES: list[LintRule] = [UndefinedReferencesRule(), CircularReferencesRule()]


def run_lint(engine: LiterateEngine, rules: list[LintRule] | None = None) -> list[Finding]:
    findings: list[Finding] = []
    for rule in rules if rules is not None else DEFAULT_RULES:
        findings.extend(rule.check(engine))
    return findings
