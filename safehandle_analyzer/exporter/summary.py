"""Generate summary.json for a scan."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from safehandle_analyzer.analysis.classify import handle_category
from safehandle_analyzer.models import ScanSummary


def write_scan_summary(summary: ScanSummary, output_dir: Path, source: str = "") -> Path:
    """Write a summary.json describing what the scan found and produced."""
    handles = [
        {"type": type_name, "category": handle_category(type_name), "count": count}
        for type_name, count in sorted(summary.handle_counts.items(), key=lambda kv: -kv[1])
    ]
    results = [
        {
            "type": result.type_name,
            "address": f"0x{result.object_address:x}",
            "root_paths": len(result.root_paths),
            "circular_paths": sum(p.has_circular_dependency for p in result.root_paths),
            "truncated_paths": sum(p.max_depth_reached for p in result.root_paths),
        }
        for result in summary.results
    ]

    data = {
        "version": "1.0",
        "generated": datetime.now().isoformat(),
        "source": source,
        "total_handles": summary.total_handles,
        "handles": handles,
        "analyzed": summary.analyzed,
        "skipped_cached": summary.skipped_cached,
        "failed": summary.failed,
        "results": results,
        "overlay": str(summary.overlay_path) if summary.overlay_path else None,
        "files_created": [str(f) for f in summary.files_created],
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    summary_path = output_dir / "summary.json"
    summary_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return summary_path
