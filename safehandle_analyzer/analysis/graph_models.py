"""Data models for the overlay graph."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GraphNode:
    address: int
    type_name: str
    is_root: bool = False
    is_target: bool = False
    depth: int = 0  # minimum distance from an analyzed target
    reference_count: int = 0


@dataclass(frozen=True)
class GraphEdge:
    source: int  # parent, closer to a root
    target: int
    inferred: bool = False  # chain was cut short, the real link to the target is unknown


@dataclass(frozen=True)
class NodePosition:
    x: int
    y: int


@dataclass
class OverlayGraph:
    nodes: dict[int, GraphNode] = field(default_factory=dict)  # insertion order = first sighting
    edges: list[GraphEdge] = field(default_factory=list)
    edge_index: set[tuple[int, int]] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.nodes)

    def has_edge(self, source: int, target: int) -> bool:
        return (source, target) in self.edge_index
