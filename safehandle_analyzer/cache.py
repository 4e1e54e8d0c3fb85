"""On-disk memo of analyzed object addresses.

Saves are atomic: the JSON is written to a sibling ``.tmp`` file and then
moved over the real file, so an interrupted scan always leaves a complete
cache behind. Addresses are only stable within one dump, so for live
processes the cache is best effort.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterator

from safehandle_analyzer.models import CacheEntry

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class AnalysisCacheStore:
    """Load, query, record and atomically save analysis cache entries."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._entries: dict[int, CacheEntry] = {}

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def load(self) -> None:
        if not self.path.exists():
            logger.info("No cache file found at %s, starting fresh", self.path)
            self._entries = {}
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            instances = data["analyzedInstances"]
            self._entries = {
                int(key): CacheEntry.from_dict(value) for key, value in instances.items()
            }
        except Exception:
            logger.exception("Error loading cache from %s, starting fresh", self.path)
            self._entries = {}
            return

        logger.info("Loaded %d cached analysis result(s) from %s", len(self._entries), self.path)

    def is_analyzed(self, address: int) -> bool:
        return address in self._entries

    def get(self, address: int) -> CacheEntry | None:
        return self._entries.get(address)

    def entries(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))

    def record(
        self,
        address: int,
        type_name: str,
        root_path_count: int,
        exported_files: list[str] | None = None,
    ) -> CacheEntry:
        entry = CacheEntry(
            object_address=address,
            type_name=type_name,
            root_path_count=root_path_count,
            analysis_date=datetime.now(),
            exported_files=list(exported_files) if exported_files is not None else None,
        )
        self._entries[address] = entry
        return entry

    def save(self, verbose: bool = False) -> bool:
        try:
            payload = {
                "version": CACHE_VERSION,
                "analyzedInstances": {
                    str(address): entry.to_dict() for address, entry in self._entries.items()
                },
            }
            text = json.dumps(payload, indent=2) + "\n"
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.temp_path
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except Exception:
            logger.exception("Error saving cache to %s", self.path)
            return False

        if verbose:
            logger.info("Saved %d analysis result(s) to cache at %s", len(self._entries), self.path)
        else:
            logger.debug("Cache updated: %d entries", len(self._entries))
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: int) -> bool:
        return address in self._entries
