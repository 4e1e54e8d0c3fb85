"""Render overlay graphs of GC root paths as standalone SVG files."""

from __future__ import annotations

import logging
from html import escape
from pathlib import Path
from typing import Iterable

from safehandle_analyzer.analysis.graph_models import GraphNode, NodePosition, OverlayGraph
from safehandle_analyzer.analysis.layout import LayeredLayout
from safehandle_analyzer.analysis.overlay import OverlayBuilder
from safehandle_analyzer.exporter.text_report import sanitize_type_name
from safehandle_analyzer.models import AnalysisResult

logger = logging.getLogger(__name__)

LEGEND_HEIGHT = 150
MAX_LABEL_LENGTH = 22

_STYLE = """\
  <style>
    .node { fill: #e3f2fd; stroke: #1976d2; stroke-width: 2; }
    .root-node { fill: #ffebee; stroke: #c62828; stroke-width: 2; }
    .target-node { fill: #fff8e1; stroke: #f9a825; stroke-width: 2.5; }
    .node-group { cursor: pointer; }
    .node-text { font-family: monospace; font-size: 12px; fill: #000; }
    .node-address { font-family: monospace; font-size: 10px; fill: #666; }
    .edge { stroke: #90caf9; stroke-width: 1.5; fill: none; opacity: 0.6; }
    .edge:hover { stroke: #1976d2; stroke-width: 2.5; opacity: 1; }
    .inferred-edge { stroke: #bdbdbd; stroke-dasharray: 6,4; }
    .count-badge { fill: #ff9800; stroke: #e65100; stroke-width: 1; }
    .count-text { font-family: sans-serif; font-size: 11px; fill: #fff; font-weight: bold; }
    .title { font-family: monospace; font-size: 18px; font-weight: bold; }
  </style>"""

_SCRIPT = """\
<script type="application/ecmascript"><![CDATA[
  document.querySelectorAll('.node-group').forEach(function (group) {
    group.addEventListener('dblclick', function () {
      var text = group.getAttribute('data-type') + ' @ ' + group.getAttribute('data-address');
      if (navigator.clipboard) {
        navigator.clipboard.writeText(text);
      }
    });
  });
]]></script>"""


def truncate_label(text: str, max_length: int = MAX_LABEL_LENGTH) -> str:
    """Shorten a type name, keeping the longest dotted tail that fits."""
    if len(text) <= max_length:
        return text
    keep = max_length - 3
    dot = text.find(".", len(text) - keep - 1)
    if dot != -1 and dot < len(text) - 1:
        return "..." + text[dot + 1:]
    return text[:keep] + "..."


def render_svg(
    graph: OverlayGraph,
    title: str,
    interactive: bool = True,
    layout: LayeredLayout | None = None,
) -> str:
    layout = layout or LayeredLayout()
    positions = layout.layout(graph)
    width, height = layout.canvas_size(positions)
    height += LEGEND_HEIGHT
    w, h = layout.node_width, layout.node_height

    out: list[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">',
        "<defs>",
        _STYLE,
        '  <marker id="arrowhead" markerWidth="10" markerHeight="10" refX="9" refY="3" orient="auto">',
        '    <polygon points="0 0, 10 3, 0 6" fill="#90caf9" />',
        "  </marker>",
        "</defs>",
        f'<rect width="{width}" height="{height}" fill="#fafafa"/>',
    ]

    # Edges first so nodes are drawn on top
    out.append('<g id="edges">')
    for edge in graph.edges:
        start = positions.get(edge.source)
        end = positions.get(edge.target)
        if start is None or end is None:
            continue
        x1, y1 = start.x + w // 2, start.y + h
        x2, y2 = end.x + w // 2, end.y
        cy = (y1 + y2) // 2
        css = "edge inferred-edge" if edge.inferred else "edge"
        out.append(
            f'  <path d="M {x1},{y1} C {x1},{cy} {x2},{cy} {x2},{y2}" '
            f'class="{css}" marker-end="url(#arrowhead)"/>'
        )
    out.append("</g>")

    out.append('<g id="nodes">')
    for node in sorted(graph.nodes.values(), key=lambda n: -n.depth):
        pos = positions.get(node.address)
        if pos is not None:
            out.extend(_render_node(node, pos, w, h))
    out.append("</g>")

    out.extend(_render_legend(20, height - LEGEND_HEIGHT + 10))
    out.append(
        f'<text x="{width // 2}" y="30" class="title" text-anchor="middle">'
        f"{escape(title)} ({len(graph.nodes)} nodes, {len(graph.edges)} edges)</text>"
    )
    if interactive:
        out.append(_SCRIPT)
    out.append("</svg>")
    return "\n".join(out) + "\n"


def export_overlay_svg(
    results: Iterable[AnalysisResult],
    output_path: Path,
    interactive: bool = True,
) -> Path | None:
    """Merge every result into one graph and write it to *output_path*."""
    logger.info("Generating overlayed GC root graph SVG...")
    try:
        graph = OverlayBuilder().merge(results)
        if not graph.nodes:
            logger.warning("No nodes to visualize")
            return None
        svg = render_svg(graph, "GC Root Overlay Graph", interactive=interactive)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(svg, encoding="utf-8")
    except Exception:
        logger.exception("Error generating overlayed GC root graph")
        return None

    logger.info("GC root overlay graph saved to: %s", output_path)
    return output_path


def export_object_svg(
    result: AnalysisResult,
    output_dir: Path,
    interactive: bool = True,
) -> Path | None:
    """Write the root-path graph of a single object next to its text report."""
    try:
        graph = OverlayBuilder().merge([result])
        if not graph.nodes:
            logger.warning("No nodes to visualize for 0x%x", result.object_address)
            return None
        file_path = (
            Path(output_dir)
            / sanitize_type_name(result.type_name)
            / f"{result.object_address:016x}.svg"
        )
        file_path.parent.mkdir(parents=True, exist_ok=True)
        title = f"GC Roots of {truncate_label(result.type_name, 60)} @ 0x{result.object_address:x}"
        file_path.write_text(render_svg(graph, title, interactive=interactive), encoding="utf-8")
    except Exception:
        logger.exception("Error generating GC root graph for 0x%x", result.object_address)
        return None

    logger.info("  GC root graph written to: %s", file_path)
    return file_path


def _render_node(node: GraphNode, pos: NodePosition, w: int, h: int) -> list[str]:
    if node.is_root:
        css = "root-node"
    elif node.is_target:
        css = "target-node"
    else:
        css = "node"
    address = f"0x{node.address:x}"
    lines = [
        f'  <g class="node-group" data-type="{escape(node.type_name)}" data-address="{address}">',
        f"    <title>{escape(node.type_name)} @ {address}</title>",
        f'    <rect x="{pos.x}" y="{pos.y}" width="{w}" height="{h}" class="{css}" rx="5"/>',
        f'    <text x="{pos.x + w // 2}" y="{pos.y + 18}" class="node-text" text-anchor="middle">'
        f"{escape(truncate_label(node.type_name))}</text>",
        f'    <text x="{pos.x + w // 2}" y="{pos.y + 32}" class="node-address" text-anchor="middle">'
        f"{address}</text>",
    ]
    if node.reference_count > 1:
        bx, by = pos.x + w - 15, pos.y - 8
        lines.append(f'    <circle cx="{bx}" cy="{by}" r="12" class="count-badge"/>')
        lines.append(
            f'    <text x="{bx}" y="{by + 4}" class="count-text" text-anchor="middle">'
            f"{node.reference_count}</text>"
        )
    lines.append("  </g>")
    return lines


def _render_legend(x: int, y: int) -> list[str]:
    return [
        '<g id="legend">',
        f'  <text x="{x}" y="{y}" class="node-text" font-weight="bold">Legend:</text>',
        f'  <rect x="{x}" y="{y + 10}" width="30" height="20" class="root-node" rx="3"/>',
        f'  <text x="{x + 40}" y="{y + 24}" class="node-text">GC Root</text>',
        f'  <rect x="{x}" y="{y + 35}" width="30" height="20" class="node" rx="3"/>',
        f'  <text x="{x + 40}" y="{y + 49}" class="node-text">Object</text>',
        f'  <rect x="{x}" y="{y + 60}" width="30" height="20" class="target-node" rx="3"/>',
        f'  <text x="{x + 40}" y="{y + 74}" class="node-text">Analyzed handle</text>',
        f'  <circle cx="{x + 15}" cy="{y + 95}" r="12" class="count-badge"/>',
        f'  <text x="{x + 15}" y="{y + 99}" class="count-text" text-anchor="middle">N</text>',
        f'  <text x="{x + 40}" y="{y + 99}" class="node-text">Reference count</text>',
        f'  <line x1="{x}" y1="{y + 120}" x2="{x + 30}" y2="{y + 120}" class="edge inferred-edge"/>',
        f'  <text x="{x + 40}" y="{y + 124}" class="node-text">Inferred link (chain cut short)</text>',
        "</g>",
    ]
