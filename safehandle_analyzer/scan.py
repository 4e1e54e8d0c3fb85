"""Scan orchestrator: classify -> analyze -> export -> record -> save."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from safehandle_analyzer.analysis.classify import (
    SAFE_FILE_HANDLE,
    is_safe_handle,
    wants_root_analysis,
)
from safehandle_analyzer.analysis.root_path import RootPathAnalyzer
from safehandle_analyzer.cache import AnalysisCacheStore
from safehandle_analyzer.exporter import (
    export_object_svg,
    export_overlay_svg,
    export_text_report,
    write_scan_summary,
)
from safehandle_analyzer.models import (
    AnalysisResult,
    CachePolicy,
    ScanConfig,
    ScanSummary,
)
from safehandle_analyzer.provider.base import HeapProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def should_analyze(config: ScanConfig, cache: AnalysisCacheStore, address: int) -> bool:
    """Decide whether a selected object needs (re-)analysis in this run.

    Text reports are written when an object is first analyzed, so they never
    force a cached object to be traced again. Graph exports need fresh
    results and do, unless the policy is ``skip``.
    """
    if not cache.is_analyzed(address):
        return True
    if config.cache_policy is CachePolicy.SKIP:
        return False
    return config.needs_fresh_results


def run_scan(
    config: ScanConfig,
    provider: HeapProvider,
    cache: AnalysisCacheStore | None = None,
    progress: ProgressCallback | None = None,
) -> ScanSummary:
    """Walk the finalizer queue and explain every selected SafeHandle.

    The cache is saved after each analyzed object, so an interrupted scan
    loses at most the object in flight. A caller-supplied ``cache`` is used in
    place of ``config.cache_file``. It is reloaded from its own path first, so
    entries recorded in memory and never saved are dropped.
    """
    if cache is None:
        cache = AnalysisCacheStore(config.cache_file)
    cache.load()
    analyzer = RootPathAnalyzer(provider, max_depth=config.max_chain_depth)
    summary = ScanSummary()

    logger.info("Loading finalizable objects")
    candidates = list(provider.enumerate_candidate_objects())
    logger.info("Finalizer queue loaded: %d object(s)", len(candidates))

    try:
        for i, (address, type_name) in enumerate(candidates):
            if progress:
                progress("Scanning", i, len(candidates))
            if not is_safe_handle(type_name):
                continue
            summary.handle_counts[type_name] = summary.handle_counts.get(type_name, 0) + 1

            if type_name == SAFE_FILE_HANDLE:
                path = provider.read_string_field(address, "_path")
                if path is not None:
                    logger.info("Active File handle for %s", path)

            if not wants_root_analysis(type_name, config.gcroot_types):
                continue

            if not should_analyze(config, cache, address):
                logger.debug(
                    "Skipping 0x%x (%s), analyzed %s",
                    address, type_name, cache.get(address).analysis_date.isoformat(),
                )
                summary.skipped_cached += 1
                continue

            logger.info("Analyzing GC roots for %s @ 0x%x", type_name, address)
            result = analyzer.analyze(address, type_name)
            if result is None:
                summary.failed += 1
                continue

            exported = _export_object(config, result)
            summary.files_created.extend(exported)
            summary.results.append(result)
            summary.analyzed += 1

            cache.record(
                address,
                result.type_name,
                len(result.root_paths),
                [str(p.absolute()) for p in exported] or None,
            )
            cache.save()

        if progress:
            progress("Scanning", len(candidates), len(candidates))

        if config.overlay:
            if progress:
                progress("Rendering overlay", 0, 1)
            summary.overlay_path = export_overlay_svg(
                summary.results, config.overlay_path, interactive=config.interactive_svg,
            )
            if summary.overlay_path:
                summary.files_created.append(summary.overlay_path)
            if progress:
                progress("Rendering overlay", 1, 1)
    finally:
        cache.save(verbose=True)

    _log_handle_counts(summary)
    summary.summary_path = _write_summary(config, summary)
    return summary


def _export_object(config: ScanConfig, result: AnalysisResult) -> list[Path]:
    exported: list[Path] = []
    if config.write_reports:
        path = export_text_report(result, config.reports_dir)
        if path:
            exported.append(path)
    if config.object_graphs:
        path = export_object_svg(result, config.reports_dir, interactive=config.interactive_svg)
        if path:
            exported.append(path)
    return exported


def _log_handle_counts(summary: ScanSummary) -> None:
    for type_name, count in sorted(summary.handle_counts.items(), key=lambda kv: -kv[1]):
        logger.info("%6d  %s", count, type_name)
    logger.info(
        "%d SafeHandle(s): %d analyzed, %d cached, %d failed",
        summary.total_handles, summary.analyzed, summary.skipped_cached, summary.failed,
    )


def _write_summary(config: ScanConfig, summary: ScanSummary) -> Path | None:
    source = str(config.dump_path) if config.dump_path else f"pid {config.process_id}"
    try:
        return write_scan_summary(summary, config.output_dir, source=source)
    except Exception:
        logger.exception("Error writing scan summary to %s", config.output_dir)
        return None
