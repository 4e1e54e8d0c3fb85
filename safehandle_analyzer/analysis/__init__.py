"""Analysis layer: root paths, overlay graph and layout."""

from safehandle_analyzer.analysis.layout import LayeredLayout, compute_layout
from safehandle_analyzer.analysis.overlay import OverlayBuilder, merge_results
from safehandle_analyzer.analysis.root_path import RootPathAnalyzer

__all__ = [
    "LayeredLayout",
    "OverlayBuilder",
    "RootPathAnalyzer",
    "compute_layout",
    "merge_results",
]
