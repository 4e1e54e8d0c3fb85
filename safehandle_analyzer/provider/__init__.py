"""Heap provider selection."""

from __future__ import annotations

import logging

from safehandle_analyzer.models import ScanConfig
from safehandle_analyzer.provider.base import (
    ChainNode,
    HeapProvider,
    ProviderError,
    build_chain,
    iter_chain,
)
from safehandle_analyzer.provider.snapshot import SnapshotHeapProvider

logger = logging.getLogger(__name__)


def open_provider(config: ScanConfig) -> HeapProvider:
    """Open the heap source named by *config*."""
    if config.process_id is not None:
        logger.info("Attaching to process ID: %d", config.process_id)
        raise ProviderError(
            f"Cannot attach to process {config.process_id}: live attach needs a "
            "runtime bridge; capture a dump and export a heap snapshot instead"
        )
    if config.dump_path is not None:
        return SnapshotHeapProvider.from_file(config.dump_path)
    raise ProviderError("No process id or dump path configured")


__all__ = [
    "ChainNode",
    "HeapProvider",
    "ProviderError",
    "SnapshotHeapProvider",
    "build_chain",
    "iter_chain",
    "open_provider",
]
