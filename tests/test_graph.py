from __future__ import annotations

import unittest

from buildexec.errors import CycleDetectedError
from buildexec.graph import DirectedGraph


class DirectedGraphTests(unittest.TestCase):
    def test_orders_dependencies_before_dependents(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph()
        graph.insert("app", ["lib", "support"])
        graph.insert("lib", ["support"])
        graph.insert("support")

        self.assertEqual(graph.ordered(), ["support", "lib", "app"])

    def test_insert_is_additive_and_idempotent(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph()
        graph.insert("a", ["b"])
        graph.insert("a", ["b", "c"])
        graph.insert("a")

        self.assertEqual(graph.dependencies("a"), ["b", "c"])
        self.assertEqual(len(graph), 1)

    def test_self_edges_are_ignored(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph()
        graph.insert("a", ["a"])

        self.assertEqual(graph.ordered(), ["a"])

    def test_dependencies_without_their_own_entry_are_emitted(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph()
        graph.insert("a", ["b"])

        self.assertEqual(graph.ordered(), ["b", "a"])

    def test_independent_nodes_keep_insertion_order(self) -> None:
        graph: DirectedGraph[int] = DirectedGraph()
        for node in (3, 1, 2):
            graph.insert(node)

        self.assertEqual(graph.ordered(), [3, 1, 2])

    def test_cycle_is_reported_with_its_path(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph(label="target dependencies")
        graph.insert("a", ["b"])
        graph.insert("b", ["a"])

        with self.assertRaises(CycleDetectedError) as ctx:
            graph.ordered()

        self.assertEqual(ctx.exception.cycle, ["a", "b", "a"])
        self.assertIn("target dependencies", str(ctx.exception))
        self.assertIn("a -> b -> a", str(ctx.exception))
        self.assertEqual(ctx.exception.invocations, [])

    def test_long_chains_are_ordered_without_recursion_limits(self) -> None:
        graph: DirectedGraph[int] = DirectedGraph()
        for node in reversed(range(1, 5000)):
            graph.insert(node, [node - 1])

        self.assertEqual(graph.ordered(), list(range(5000)))

    def test_cycle_at_the_end_of_a_long_chain_is_reported(self) -> None:
        graph: DirectedGraph[int] = DirectedGraph()
        for node in range(1, 3000):
            graph.insert(node, [node + 1])
        graph.insert(3000, [2999])

        with self.assertRaises(CycleDetectedError) as ctx:
            graph.ordered()

        self.assertEqual(ctx.exception.cycle, [2999, 3000, 2999])

    def test_subgraph_keeps_transitive_dependencies_only(self) -> None:
        graph: DirectedGraph[str] = DirectedGraph()
        graph.insert("app", ["lib"])
        graph.insert("lib", ["support"])
        graph.insert("support")
        graph.insert("tool")

        subgraph = graph.subgraph(["lib"])

        self.assertNotIn("app", subgraph)
        self.assertNotIn("tool", subgraph)
        self.assertEqual(subgraph.ordered(), ["support", "lib"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
