"""Ordering of a target's invocations by producer/consumer relationships."""
from __future__ import annotations

from typing import Dict, List, Sequence

from .errors import CycleDetectedError
from .graph import DirectedGraph
from .invocation import Invocation


def producer_map(invocations: Sequence[Invocation]) -> Dict[str, int]:
    """Map each output path to the index of the first invocation declaring it."""

    producers: Dict[str, int] = {}
    for index, invocation in enumerate(invocations):
        for output in invocation.outputs:
            producers.setdefault(output, index)
    return producers


def sort_invocations(invocations: Sequence[Invocation]) -> List[Invocation]:
    """Return ``invocations`` ordered so producers run before their consumers.

    Inputs, phony inputs and input dependencies that match a declared output
    create an edge to that output's producer. When several invocations declare
    the same output only the first one is treated as its producer.
    """

    producers = producer_map(invocations)

    graph: DirectedGraph[int] = DirectedGraph(label="invocation graph")
    for index, invocation in enumerate(invocations):
        graph.insert(index, ())
        graph.insert(
            index,
            (producers[path] for path in invocation.dependency_paths() if path in producers),
        )

    try:
        order = graph.ordered()
    except CycleDetectedError as exc:
        raise CycleDetectedError(
            [str(invocations[index]) for index in exc.cycle],
            label="invocation graph",
        ) from exc

    return [invocations[index] for index in order]
