"""Exporter layer."""

from safehandle_analyzer.exporter.summary import write_scan_summary
from safehandle_analyzer.exporter.svg_graph import export_object_svg, export_overlay_svg
from safehandle_analyzer.exporter.text_report import export_text_report

__all__ = [
    "export_object_svg",
    "export_overlay_svg",
    "export_text_report",
    "write_scan_summary",
]
