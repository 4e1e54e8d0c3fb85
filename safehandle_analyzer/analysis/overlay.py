"""Overlay builder: merges many root-path results into one graph.

Depth is anchored at the analyzed objects. Each target sits at depth 0 and
every other node keeps the smallest distance at which it was seen, walking
from a target back toward its root.
"""

from __future__ import annotations

from typing import Iterable

from safehandle_analyzer.analysis.graph_models import GraphEdge, GraphNode, OverlayGraph
from safehandle_analyzer.models import AnalysisResult, RootPath

MAX_VISUAL_DEPTH = 20


class OverlayBuilder:
    """Incrementally merge analysis results into an ``OverlayGraph``."""

    def __init__(self, max_depth: int = MAX_VISUAL_DEPTH):
        self.max_depth = max_depth
        self.graph = OverlayGraph()

    def merge(self, results: Iterable[AnalysisResult]) -> OverlayGraph:
        for result in results:
            self.add(result)
        return self.graph

    def add(self, result: AnalysisResult) -> None:
        for root_path in result.root_paths:
            self._add_path(result, root_path)

    def _add_path(self, result: AnalysisResult, root_path: RootPath) -> None:
        # root first, target last
        sequence: list[tuple[int, str, bool]] = [
            (root_path.root_address, f"[{root_path.root_kind.label}]", True),
        ]
        sequence.extend((link.address, link.type_name, False) for link in root_path.chain)
        # a chain that stops before the target only implies the last hop
        inferred = bool(root_path.chain) and sequence[-1][0] != result.object_address
        if sequence[-1][0] != result.object_address or len(sequence) == 1:
            sequence.append((result.object_address, result.type_name, False))

        nodes = self.graph.nodes
        target = nodes.get(result.object_address)
        if target is None:
            target = GraphNode(address=result.object_address, type_name=result.type_name)
            nodes[result.object_address] = target
        target.depth = 0
        target.is_target = True
        target.reference_count += 1

        child = result.object_address
        for depth, (address, type_name, is_root) in enumerate(reversed(sequence[:-1]), start=1):
            if depth > self.max_depth:
                break
            node = nodes.get(address)
            if node is None:
                node = GraphNode(address=address, type_name=type_name, is_root=is_root, depth=depth)
                nodes[address] = node
            else:
                node.depth = min(node.depth, depth)
                node.is_root = node.is_root or is_root
            node.reference_count += 1
            self._add_edge(address, child, inferred=inferred and depth == 1)
            child = address

    def _add_edge(self, source: int, target: int, inferred: bool = False) -> None:
        if source == target:
            return
        if self.graph.has_edge(source, target):
            if not inferred:
                # a traced reference replaces an inferred one
                edges = self.graph.edges
                for i, edge in enumerate(edges):
                    if edge.source == source and edge.target == target and edge.inferred:
                        edges[i] = GraphEdge(source=source, target=target)
                        break
            return
        self.graph.edge_index.add((source, target))
        self.graph.edges.append(GraphEdge(source=source, target=target, inferred=inferred))


def merge_results(
    results: Iterable[AnalysisResult], max_depth: int = MAX_VISUAL_DEPTH,
) -> OverlayGraph:
    return OverlayBuilder(max_depth=max_depth).merge(results)
