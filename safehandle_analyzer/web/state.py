"""Per-app state for the report browser: cache file and output directory."""

from __future__ import annotations

from pathlib import Path

from safehandle_analyzer.cache import AnalysisCacheStore
from safehandle_analyzer.exporter.text_report import sanitize_type_name
from safehandle_analyzer.models import CacheEntry


class ReportState:
    """Read-only view over a scan's cache and output directory.

    The cache is re-read on every lookup so a scan running alongside the
    server shows up without a restart.
    """

    def __init__(self, cache_file: Path, output_dir: Path):
        self.cache_file = Path(cache_file)
        self.output_dir = Path(output_dir)

    def load_cache(self) -> AnalysisCacheStore:
        store = AnalysisCacheStore(self.cache_file)
        store.load()
        return store

    def entry(self, address: int) -> CacheEntry | None:
        return self.load_cache().get(address)

    def exported_file(self, address: int, suffix: str) -> Path | None:
        """Find an exported file of a cached object.

        Absolute paths recorded by the scan win. Otherwise the file is looked
        up at its usual place under ``output_dir``, which keeps the server
        independent of the directory the scan ran in.
        """
        entry = self.entry(address)
        if entry is None or not entry.exported_files:
            return None
        for name in entry.exported_files:
            path = Path(name)
            if path.is_absolute() and path.suffix == suffix and path.is_file():
                return path
        path = (
            self.output_dir / "GCRoots" / sanitize_type_name(entry.type_name)
            / f"{entry.object_address:016x}{suffix}"
        )
        return path if path.is_file() else None

    @property
    def overlay_path(self) -> Path:
        return self.output_dir / "gc_roots_overlay.svg"
