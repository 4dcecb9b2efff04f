"""Dependency edges between identifiers and circular reference detection."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .model import Block, CircularReference

if TYPE_CHECKING:
    from .registry import BlockRegistry

logger = logging.getLogger(__name__)

_ON_STACK = 1
_DONE = 2
_END = object()


def rebuild_dependents(blocks_by_identifier: Mapping[str, Sequence[Block]]) -> None:
    """
    Recompute every block's dependents from the current references.

    Always a full clear-then-rebuild, so edges to deleted or edited blocks
    cannot survive.
    """
    for blocks in blocks_by_identifier.values():
        for block in blocks:
            block.dependents.clear()

    for blocks in blocks_by_identifier.values():
        for block in blocks:
            for dep in block.references:
                for dep_block in blocks_by_identifier.get(dep, ()):
                    dep_block.dependents.add(block.identifier)


def find_circular_references(registry: BlockRegistry) -> list[CircularReference]:
    """
    Report every back edge of a depth-first search over identifiers.

    Roots are visited in registry order and edges in occurrence order, so the
    result is stable for a given registry state. Iterative, so long reference
    chains do not hit the interpreter's recursion limit.
    """
    state: dict[str, int] = {}
    cycles: list[CircularReference] = []

    for root in registry.identifiers():
        if root in state:
            continue

        path = [root]
        state[root] = _ON_STACK
        stack = [iter(registry.dependencies_of(root))]

        while stack:
            dep = next(stack[-1], _END)
            if dep is _END:
                stack.pop()
                state[path.pop()] = _DONE
                continue

            seen = state.get(dep)
            if seen == _ON_STACK:
                k = path.index(dep)
                cycle = CircularReference(path=tuple(path[k:]), start=dep)
                logger.debug("Found circular reference %s", " -> ".join(cycle.path))
                cycles.append(cycle)
                continue
            if seen == _DONE:
                continue

            state[dep] = _ON_STACK
            path.append(dep)
            stack.append(iter(registry.dependencies_of(dep)))

    return cycles


def graph_data(registry: BlockRegistry) -> dict[str, list[dict[str, Any]]]:
    """Nodes and edges of the identifier graph, for JSON or DOT output."""
    nodes = []
    edges = []
    for identifier in registry.identifiers():
        blocks = registry.lookup(identifier)
        nodes.append(
            {
                "id": identifier,
                "occurrences": len(blocks),
                "language": blocks[0].language if blocks else "",
                "documents": sorted({b.document_id for b in blocks}),
            }
        )
        for dep in registry.dependencies_of(identifier):
            edges.append(
                {"source": identifier, "target": dep, "resolved": dep in registry}
            )
    return {"nodes": nodes, "edges": edges}
