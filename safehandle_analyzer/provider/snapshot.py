"""Heap provider backed by a JSON heap snapshot exported from a dump."""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Iterator

from safehandle_analyzer.models import RootKind
from safehandle_analyzer.provider.base import (
    ChainNode,
    HeapProvider,
    ProviderError,
    build_chain,
)

logger = logging.getLogger(__name__)


def parse_address(value: int | str) -> int:
    """Accept ``4096``, ``"4096"`` or ``"0x1000"``."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid address: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    return int(text, 16) if text.startswith("0x") else int(text)


class SnapshotHeapProvider(HeapProvider):
    """Read objects, references and GC roots from a snapshot document.

    Root paths are the shortest reference chains from each root's object to
    the target, found breadth-first.
    """

    def __init__(self, data: dict):
        self._types: dict[int, str] = {}
        self._refs: dict[int, list[int]] = {}
        self._fields: dict[int, dict[str, str]] = {}
        self._finalizable: list[int] = []
        self._roots: list[tuple[RootKind, int, int]] = []
        try:
            self._load(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(f"Malformed heap snapshot: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> SnapshotHeapProvider:
        logger.info("Reading heap snapshot from: %s", path)
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ProviderError(f"Dump not found: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderError(f"Cannot load dump {path}: {e}") from e
        if not isinstance(data, dict):
            raise ProviderError(f"Cannot load dump {path}: expected a JSON object")
        provider = cls(data)
        logger.info(
            "Snapshot loaded: %d objects, %d roots",
            len(provider._types), len(provider._roots),
        )
        return provider

    def _load(self, data: dict) -> None:
        for obj in data.get("objects", []):
            address = parse_address(obj["address"])
            self._types[address] = str(obj.get("type") or "<unknown>")
            self._refs[address] = [parse_address(r) for r in obj.get("refs", [])]
            if obj.get("fields"):
                self._fields[address] = {str(k): str(v) for k, v in obj["fields"].items()}
            if obj.get("finalizable"):
                self._finalizable.append(address)

        for root in data.get("roots", []):
            self._roots.append((
                RootKind.parse(root.get("kind")),
                parse_address(root["address"]),
                parse_address(root["object"]),
            ))

    def enumerate_candidate_objects(self) -> Iterator[tuple[int, str]]:
        for address in self._finalizable:
            yield address, self._types[address]

    def enumerate_root_paths(
        self, address: int,
    ) -> Iterator[tuple[RootKind, int, ChainNode | None]]:
        for kind, root_address, root_object in self._roots:
            path = self._shortest_path(root_object, address)
            if path is not None:
                yield kind, root_address, build_chain(path)

    def resolve_type(self, address: int) -> str:
        try:
            return self._types[address]
        except KeyError:
            raise ProviderError(f"No object at 0x{address:x}") from None

    def is_valid_object(self, address: int) -> bool:
        return address in self._types

    def read_string_field(self, address: int, field_name: str) -> str | None:
        return self._fields.get(address, {}).get(field_name)

    def _shortest_path(self, start: int, target: int) -> list[int] | None:
        if start not in self._types:
            return None
        parents: dict[int, int | None] = {start: None}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if current == target:
                path: list[int] = []
                node: int | None = current
                while node is not None:
                    path.append(node)
                    node = parents[node]
                path.reverse()
                return path
            for child in self._refs.get(current, []):
                if child not in parents and child in self._types:
                    parents[child] = current
                    queue.append(child)
        return None
