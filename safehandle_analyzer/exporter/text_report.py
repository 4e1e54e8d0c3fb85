"""Write one plain-text GC root report per analyzed object."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from safehandle_analyzer.models import AnalysisResult

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_type_name(type_name: str) -> str:
    """Make a type name usable as a directory name."""
    return _INVALID_CHARS.sub("_", type_name) or "_"


def report_path(result: AnalysisResult, output_dir: Path) -> Path:
    return (
        output_dir
        / sanitize_type_name(result.type_name)
        / f"{result.object_address:016x}.txt"
    )


def render_text_report(result: AnalysisResult) -> str:
    lines = [
        f"GC Root Analysis for {result.type_name}",
        f"Object Address: 0x{result.object_address:x}",
        f"Analysis Date: {result.analysis_date.isoformat()}",
        "=" * 80,
        "",
    ]

    if result.is_orphaned:
        lines.append(_orphan_message(result))
        return "\n".join(lines) + "\n"

    for path in result.root_paths:
        lines.append(
            f"GC Root path #{path.path_number}: "
            f"{path.root_kind.label} @ 0x{path.root_address:x}"
        )
        for link in path.chain:
            lines.append(f"    --> [{link.depth}] {link.type_name} @ 0x{link.address:x}")
        if path.has_circular_dependency:
            lines.append("    Circular dependency detected")
        if path.max_depth_reached:
            lines.append("    Maximum depth reached, stopping traversal")
        lines.append("")

    lines.append(f"Total GC root paths found: {len(result.root_paths)}")
    return "\n".join(lines) + "\n"


def export_text_report(result: AnalysisResult, output_dir: Path) -> Path | None:
    """Write the report under ``output_dir/<type>/<address>.txt``."""
    try:
        if result.is_orphaned:
            logger.warning("  %s", _orphan_message(result))
        file_path = report_path(result, output_dir)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(render_text_report(result), encoding="utf-8")
    except Exception:
        logger.exception("Error exporting GC root analysis for 0x%x", result.object_address)
        return None

    logger.info("  GC root analysis written to: %s", file_path)
    return file_path


def _orphan_message(result: AnalysisResult) -> str:
    return f"No GC root paths found for 0x{result.object_address:x} (orphaned object?)"
