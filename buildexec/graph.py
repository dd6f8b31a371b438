"""Generic dependency graph with depth-first topological ordering."""
from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterable, Iterator, List, TypeVar

from .errors import CycleDetectedError

T = TypeVar("T", bound=Hashable)


class DirectedGraph(Generic[T]):
    """Maps each node to the nodes it depends on.

    Edges are additive and idempotent: inserting the same edge twice, or an
    edge from a node to itself, leaves the graph unchanged. Nodes are visited in
    insertion order so :meth:`ordered` is deterministic.
    """

    def __init__(self, *, label: str = "graph") -> None:
        self.label = label
        self._edges: Dict[T, Dict[T, None]] = {}

    def insert(self, node: T, dependencies: Iterable[T] = ()) -> None:
        bucket = self._edges.setdefault(node, {})
        for dependency in dependencies:
            if dependency == node:
                continue
            bucket[dependency] = None

    def dependencies(self, node: T) -> List[T]:
        return list(self._edges.get(node, ()))

    def __contains__(self, node: object) -> bool:
        return node in self._edges

    def __iter__(self) -> Iterator[T]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def ordered(self) -> List[T]:
        """Return every node after all of its dependencies.

        Dependencies that were never inserted as nodes themselves are still
        emitted. Raises :class:`CycleDetectedError` naming the cycle.
        """

        order: List[T] = []
        visited: set[T] = set()

        for root in self._edges:
            if root in visited:
                continue
            path: List[T] = [root]
            visiting: set[T] = {root}
            stack: List[Iterator[T]] = [iter(self._edges.get(root, ()))]
            while stack:
                for dependency in stack[-1]:
                    if dependency in visited:
                        continue
                    if dependency in visiting:
                        start = path.index(dependency)
                        raise CycleDetectedError([*path[start:], dependency], label=self.label)
                    path.append(dependency)
                    visiting.add(dependency)
                    stack.append(iter(self._edges.get(dependency, ())))
                    break
                else:
                    stack.pop()
                    node = path.pop()
                    visiting.discard(node)
                    visited.add(node)
                    order.append(node)
        return order

    def subgraph(self, roots: Iterable[T]) -> "DirectedGraph[T]":
        """Return the graph restricted to ``roots`` and their transitive dependencies."""

        reachable: set[T] = set()
        pending = list(roots)
        while pending:
            node = pending.pop()
            if node in reachable:
                continue
            reachable.add(node)
            pending.extend(self._edges.get(node, ()))

        result: DirectedGraph[T] = DirectedGraph(label=self.label)
        for node, dependencies in self._edges.items():
            if node in reachable:
                result.insert(node, dependencies)
        return result
