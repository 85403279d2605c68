# Overview: Shared transition-graph primitive consumed by every workflow.

"""
Guarded State Machine

================================================================================
PURPOSE: One transition check for all post-sale workflows
================================================================================

A workflow is described by a transition graph: a total mapping from every
reachable state to the set of states directly reachable from it. A state
whose target set is empty is terminal.

    RETURN_GRAPH = {
        "eligibility": frozenset({"approved", "rejected"}),
        ...
        "refunded": frozenset(),
    }

RULES:
1. A move is legal iff the target is in graph[current]
2. The check is a pure predicate: nothing is mutated
3. Unknown states are never legal sources
4. Adding a workflow means adding a graph, not new control flow

================================================================================
"""

from __future__ import annotations

from typing import Mapping, AbstractSet

from .result import Result, INVALID_TRANSITION, failure, success


TransitionGraph = Mapping[str, AbstractSet[str]]


def validate_graph(graph: TransitionGraph) -> None:
    """
    Check that every target state is also a key of the graph.

    Raises:
        ValueError: If a target state has no entry of its own

    Graph definitions are module constants, so this runs at import time
    and a malformed graph fails loudly instead of at the first request.
    """
    for source, targets in graph.items():
        missing = set(targets) - set(graph)
        if missing:
            raise ValueError(
                f"State '{source}' targets undeclared state(s): {', '.join(sorted(missing))}"
            )


def can_transition(graph: TransitionGraph, current: str, target: str) -> bool:
    """True iff ``target`` is directly reachable from ``current``."""
    return target in graph.get(current, ())


def is_terminal(graph: TransitionGraph, state: str) -> bool:
    """True iff ``state`` is declared and has no outgoing transitions."""
    return state in graph and not graph[state]


def terminal_states(graph: TransitionGraph) -> frozenset[str]:
    return frozenset(state for state, targets in graph.items() if not targets)


def allowed_targets(graph: TransitionGraph, current: str) -> list[str]:
    """Targets reachable from ``current``, sorted for stable output."""
    return sorted(graph.get(current, ()))


def check_transition(
    graph: TransitionGraph,
    current: str,
    target: str,
    *,
    entity: str,
) -> Result[str]:
    """
    Validate a move and return the target state, or a failure naming it.

    Args:
        graph: The workflow's transition graph
        current: Current state of the entity
        target: Requested state
        entity: Human-readable entity name used in the failure message

    Returns:
        success(target) when legal, otherwise an INVALID_TRANSITION failure
        on the ``status`` field
    """
    if can_transition(graph, current, target):
        return success(target)

    allowed = allowed_targets(graph, current)
    hint = ", ".join(allowed) if allowed else "none (terminal)"
    return failure(
        INVALID_TRANSITION,
        f"Cannot move {entity} from '{current}' to '{target}'. Allowed: {hint}",
        "status",
    )
