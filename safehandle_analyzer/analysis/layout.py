"""Layered layout: one row per depth, roots at the top, targets at the bottom."""

from __future__ import annotations

from safehandle_analyzer.analysis.graph_models import GraphNode, NodePosition, OverlayGraph

NODE_WIDTH = 180
NODE_HEIGHT = 40
HORIZONTAL_SPACING = 50
VERTICAL_SPACING = 60
TOP_MARGIN = 50
MIN_MARGIN = 50
CANVAS_WIDTH = 2000
CANVAS_PADDING = 100


class LayeredLayout:
    """Assign row/column coordinates to overlay graph nodes."""

    def __init__(
        self,
        node_width: int = NODE_WIDTH,
        node_height: int = NODE_HEIGHT,
        horizontal_spacing: int = HORIZONTAL_SPACING,
        vertical_spacing: int = VERTICAL_SPACING,
        top_margin: int = TOP_MARGIN,
        min_margin: int = MIN_MARGIN,
        canvas_width: int = CANVAS_WIDTH,
    ):
        self.node_width = node_width
        self.node_height = node_height
        self.horizontal_spacing = horizontal_spacing
        self.vertical_spacing = vertical_spacing
        self.top_margin = top_margin
        self.min_margin = min_margin
        self.canvas_width = canvas_width

    def rows(self, graph: OverlayGraph) -> list[list[GraphNode]]:
        """Depth groups, deepest first, each sorted by reference count."""
        by_depth: dict[int, list[GraphNode]] = {}
        for node in graph.nodes.values():
            by_depth.setdefault(node.depth, []).append(node)
        return [
            sorted(by_depth[depth], key=lambda n: -n.reference_count)
            for depth in sorted(by_depth, reverse=True)
        ]

    def layout(self, graph: OverlayGraph) -> dict[int, NodePosition]:
        positions: dict[int, NodePosition] = {}
        step_x = self.node_width + self.horizontal_spacing
        y = self.top_margin

        for row in self.rows(graph):
            row_width = len(row) * step_x
            x = max(self.min_margin, (self.canvas_width - row_width) // 2)
            for node in row:
                positions[node.address] = NodePosition(x, y)
                x += step_x
            y += self.node_height + self.vertical_spacing

        return positions

    def canvas_size(self, positions: dict[int, NodePosition]) -> tuple[int, int]:
        if not positions:
            return 0, 0
        width = max(p.x for p in positions.values()) + self.node_width + CANVAS_PADDING
        height = max(p.y for p in positions.values()) + self.node_height + CANVAS_PADDING
        return width, height


def compute_layout(graph: OverlayGraph) -> dict[int, NodePosition]:
    return LayeredLayout().layout(graph)
