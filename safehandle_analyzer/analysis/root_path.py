"""Root path analyzer: turns provider chains into bounded, serializable results."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Iterator

from safehandle_analyzer.models import (
    MAX_CHAIN_DEPTH,
    AnalysisResult,
    ChainLink,
    RootKind,
    RootPath,
)
from safehandle_analyzer.provider.base import ChainNode, HeapProvider, iter_chain

logger = logging.getLogger(__name__)


class RootPathAnalyzer:
    """Find every GC root path that keeps an object alive."""

    def __init__(self, provider: HeapProvider, max_depth: int = MAX_CHAIN_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be positive")
        self.provider = provider
        self.max_depth = max_depth

    def analyze(self, address: int, type_name: str | None = None) -> AnalysisResult | None:
        """Analyze one object. Returns ``None`` instead of raising on failure."""
        try:
            if not self.provider.is_valid_object(address):
                logger.warning("Object 0x%x is not valid, skipping root analysis", address)
                return None
            if type_name is None:
                type_name = self.provider.resolve_type(address)

            root_paths: list[RootPath] = []
            for path_number, (kind, root_address, head) in enumerate(
                self.provider.enumerate_root_paths(address), start=1,
            ):
                root_paths.append(self._walk(kind, root_address, path_number, head))
        except Exception:
            logger.exception("Error analyzing GC roots for 0x%x", address)
            return None

        logger.debug("0x%x: %d root path(s)", address, len(root_paths))
        return AnalysisResult(
            type_name=type_name,
            object_address=address,
            analysis_date=datetime.now(),
            root_paths=tuple(root_paths),
        )

    def analyze_many(self, candidates: Iterable[tuple[int, str]]) -> Iterator[AnalysisResult]:
        for address, type_name in candidates:
            result = self.analyze(address, type_name)
            if result is not None:
                yield result

    def _walk(
        self,
        kind: RootKind,
        root_address: int,
        path_number: int,
        head: ChainNode | None,
    ) -> RootPath:
        chain: list[ChainLink] = []
        visited: set[int] = set()
        circular = False
        max_depth_reached = False
        depth = 0

        for node in iter_chain(head):
            if node.address in visited:
                circular = True
                break
            if depth >= self.max_depth:
                max_depth_reached = True
                break
            visited.add(node.address)
            chain.append(ChainLink(
                address=node.address,
                type_name=self.provider.resolve_type(node.address),
                depth=depth,
            ))
            depth += 1

        if circular:
            logger.debug("Path #%d for root 0x%x: circular reference", path_number, root_address)
        if max_depth_reached:
            logger.debug("Path #%d for root 0x%x: depth limit %d reached",
                         path_number, root_address, self.max_depth)

        return RootPath(
            root_kind=kind,
            root_address=root_address,
            path_number=path_number,
            chain=tuple(chain),
            has_circular_dependency=circular,
            max_depth_reached=max_depth_reached,
        )
