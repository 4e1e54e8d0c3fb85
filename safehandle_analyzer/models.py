"""Data models for the SafeHandle analysis pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

MAX_CHAIN_DEPTH = 1000


class RootKind(enum.Enum):
    STACK = "stack"
    HANDLE = "handle"
    PINNED = "pinned"
    STRONG = "strong"
    WEAK = "weak"
    FINALIZER_QUEUE = "finalizer_queue"
    ASYNC_PINNED = "async_pinned"
    REF_COUNTED = "ref_counted"
    STATIC = "static"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> RootKind:
        if not value:
            return cls.UNKNOWN
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        for kind in cls:
            if kind.value == key:
                return kind
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        # "finalizer_queue" -> "FinalizerQueue"
        return "".join(part.capitalize() for part in self.value.split("_"))


class CachePolicy(enum.Enum):
    REFRESH = "refresh"  # re-analyze cached objects when this run draws graphs
    SKIP = "skip"        # never re-analyze cached objects


@dataclass(frozen=True)
class ChainLink:
    """One hop in a root-to-target reference chain."""
    address: int
    type_name: str
    depth: int  # 0-based, counted from the root


@dataclass(frozen=True)
class RootPath:
    """A single reference chain from a GC root to the analyzed object."""
    root_kind: RootKind
    root_address: int
    path_number: int
    chain: tuple[ChainLink, ...] = ()
    has_circular_dependency: bool = False
    max_depth_reached: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    """All root paths found for one analyzed object."""
    type_name: str
    object_address: int
    analysis_date: datetime
    root_paths: tuple[RootPath, ...] = ()

    @property
    def is_orphaned(self) -> bool:
        return not self.root_paths


@dataclass
class CacheEntry:
    """Durable record that an object address was analyzed."""
    object_address: int
    type_name: str
    root_path_count: int
    analysis_date: datetime
    exported_files: list[str] | None = None

    def to_dict(self) -> dict:
        return {
            "objectAddress": self.object_address,
            "typeName": self.type_name,
            "rootPathCount": self.root_path_count,
            "analysisDate": self.analysis_date.isoformat(),
            "exportedFiles": self.exported_files,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CacheEntry:
        exported = data.get("exportedFiles")
        return cls(
            object_address=int(data["objectAddress"]),
            type_name=str(data["typeName"]),
            root_path_count=int(data["rootPathCount"]),
            analysis_date=datetime.fromisoformat(data["analysisDate"]),
            exported_files=list(exported) if exported is not None else None,
        )


@dataclass
class ScanSummary:
    """Outcome of one scan over the finalizer queue."""
    handle_counts: dict[str, int] = field(default_factory=dict)
    analyzed: int = 0
    skipped_cached: int = 0
    failed: int = 0
    results: list[AnalysisResult] = field(default_factory=list)
    files_created: list[Path] = field(default_factory=list)
    overlay_path: Path | None = None
    summary_path: Path | None = None

    @property
    def total_handles(self) -> int:
        return sum(self.handle_counts.values())


@dataclass
class ScanConfig:
    """Configuration for a scan run."""
    process_id: int | None = None
    dump_path: Path | None = None
    gcroot_types: list[str] = field(default_factory=list)
    output_dir: Path = field(default_factory=lambda: Path("."))
    cache_file: Path = field(default_factory=lambda: Path("analysis_cache.json"))
    cache_policy: CachePolicy = CachePolicy.REFRESH
    write_reports: bool = True
    object_graphs: bool = False
    overlay: bool = False
    interactive_svg: bool = True
    max_chain_depth: int = MAX_CHAIN_DEPTH

    @property
    def needs_fresh_results(self) -> bool:
        return self.object_graphs or self.overlay

    @property
    def reports_dir(self) -> Path:
        return self.output_dir / "GCRoots"

    @property
    def overlay_path(self) -> Path:
        return self.output_dir / "gc_roots_overlay.svg"

    def validate(self) -> None:
        if (self.process_id is None) == (self.dump_path is None):
            raise ValueError("Exactly one of a process id or a dump path must be specified")
