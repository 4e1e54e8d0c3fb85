"""Abstract heap inspection provider."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Iterator

from safehandle_analyzer.models import RootKind


class ProviderError(RuntimeError):
    """The heap could not be attached to, loaded, or inspected."""


@dataclass
class ChainNode:
    """Linked node of a reference chain, walkable toward the target."""
    address: int
    next: ChainNode | None = None


def iter_chain(head: ChainNode | None) -> Iterator[ChainNode]:
    """Lazily walk a linked chain by following ``next``."""
    node = head
    while node is not None:
        yield node
        node = node.next


def build_chain(addresses: list[int]) -> ChainNode | None:
    """Link a list of addresses into a chain, first address at the head."""
    head: ChainNode | None = None
    for address in reversed(addresses):
        head = ChainNode(address=address, next=head)
    return head


class HeapProvider(abc.ABC):
    """Source of resolved heap facts for one inspection session.

    Addresses are only meaningful within the session that produced them.
    """

    @abc.abstractmethod
    def enumerate_candidate_objects(self) -> Iterator[tuple[int, str]]:
        """Yield ``(address, type_name)`` for every finalizable object."""

    @abc.abstractmethod
    def enumerate_root_paths(
        self, address: int,
    ) -> Iterator[tuple[RootKind, int, ChainNode | None]]:
        """Yield ``(root_kind, root_address, chain_head)`` keeping *address* alive."""

    @abc.abstractmethod
    def resolve_type(self, address: int) -> str:
        """Return the type name of the object at *address*."""

    def is_valid_object(self, address: int) -> bool:
        return True

    def read_string_field(self, address: int, field_name: str) -> str | None:
        return None

    def close(self) -> None:
        pass

    def __enter__(self) -> HeapProvider:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
