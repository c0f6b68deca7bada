# gdblint/symtab.py
"""
gdblint/symtab.py
═════════════════

Fixed-size hash map of symbols.

Each run owns two tables: one holding definitions (gdb built-ins plus
whatever the script defines) and one holding references extracted from the
script.  The report pass diffs one against the other.

Layout
──────

    buckets[0]    → Symbol → Symbol → …        (most recent first)
    buckets[1]    → …
    …
    buckets[1023] → …

A symbol always lives in ``buckets[fnv1a(name) % BUCKET_COUNT]``.  The
bucket count never changes; long chains are accepted.  The bucket index is
part of the on-disk cache format, so the hash is a fixed 32-bit FNV-1a over
the UTF-8 bytes of the name.
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List, Optional, Tuple

BUCKET_COUNT: int = 1024

FNV_OFFSET_BASIS: int = 2166136261
FNV_PRIME: int = 16777619


def fnv1a(name: str) -> int:
    """Return the 32-bit FNV-1a hash of *name*."""
    value = FNV_OFFSET_BASIS
    for byte in name.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value


def bucket_index(name: str) -> int:
    return fnv1a(name) % BUCKET_COUNT


class SymbolKind(enum.IntEnum):
    """What a name refers to.  The integer values are the cache encoding."""

    VARIABLE = 0
    FUNCTION = 1

    @property
    def label(self) -> str:
        return "var" if self is SymbolKind.VARIABLE else "func"


@dataclass(eq=False)
class Symbol:
    """
    A single definition or reference.

    ``first_line`` is the 1-based line of the logical line the symbol was
    found on; ``0`` marks a built-in supplied by gdb itself.  Symbols
    compare by identity so that two insertions of the same triple stay
    distinguishable when duplicate suppression is off.
    """

    name: str
    kind: SymbolKind
    first_line: int = 0

    @property
    def is_builtin(self) -> bool:
        return self.first_line == 0

    def same_as(self, name: str, kind: SymbolKind, first_line: int) -> bool:
        return (
            self.name == name
            and self.kind == kind
            and self.first_line == first_line
        )


class SymbolTable:
    """
    Chained hash map keyed by symbol name.

    Parameters
    ----------
    check_duplicates:
        When ``True``, inserting a ``(name, kind, line)`` triple that is
        already present in its chain is a no-op.
    """

    def __init__(self, check_duplicates: bool = False) -> None:
        self.check_duplicates = check_duplicates
        self._buckets: List[Deque[Symbol]] = [deque() for _ in range(BUCKET_COUNT)]
        self._count = 0

    # ── mutation ─────────────────────────────────────────────────────

    def insert(
        self,
        name: str,
        line: int = 0,
        kind: SymbolKind = SymbolKind.VARIABLE,
    ) -> Optional[Symbol]:
        """Prepend a symbol to its bucket and return it.

        Empty names are ignored and yield ``None``.  With duplicate
        suppression on, the already stored symbol is returned instead.
        """
        if not name:
            return None

        chain = self._buckets[bucket_index(name)]

        if self.check_duplicates:
            for existing in chain:
                if existing.same_as(name, kind, line):
                    return existing

        symbol = Symbol(name=name, kind=SymbolKind(kind), first_line=line)
        chain.appendleft(symbol)
        self._count += 1
        return symbol

    def attach(self, index: int, symbol: Symbol) -> None:
        """Prepend an already built *symbol* to bucket *index*.

        Used by the cache loader, which has validated that *index* is the
        symbol's hash bucket.
        """
        if index != bucket_index(symbol.name):
            raise ValueError(
                f"symbol {symbol.name!r} does not belong in bucket {index}"
            )
        self._buckets[index].appendleft(symbol)
        self._count += 1

    def destroy(self) -> None:
        """Drop every chain.  Safe to call on an empty table."""
        for chain in self._buckets:
            chain.clear()
        self._count = 0

    clear = destroy

    # ── lookup ───────────────────────────────────────────────────────

    def find(self, name: str, kind: Optional[SymbolKind] = None) -> Optional[Symbol]:
        """Return the first symbol called *name* of the given *kind*.

        ``kind=None`` matches any kind.
        """
        for symbol in self._buckets[bucket_index(name)]:
            if symbol.name != name:
                continue
            if kind is not None and symbol.kind != kind:
                continue
            return symbol
        return None

    def find_all(self, name: str, kind: Optional[SymbolKind] = None) -> List[Symbol]:
        return [
            symbol
            for symbol in self._buckets[bucket_index(name)]
            if symbol.name == name and (kind is None or symbol.kind == kind)
        ]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None

    # ── traversal ────────────────────────────────────────────────────

    def bucket(self, index: int) -> List[Symbol]:
        """Chain of bucket *index*, most recent first."""
        return list(self._buckets[index])

    def buckets(self) -> Iterator[Tuple[int, List[Symbol]]]:
        """Yield ``(index, chain)`` for every non-empty bucket."""
        for index, chain in enumerate(self._buckets):
            if chain:
                yield index, list(chain)

    def __iter__(self) -> Iterator[Symbol]:
        for chain in self._buckets:
            yield from chain

    def __len__(self) -> int:
        return self._count

    def __bool__(self) -> bool:
        return self._count > 0

    def __repr__(self) -> str:
        used = sum(1 for chain in self._buckets if chain)
        return f"SymbolTable(symbols={self._count}, buckets_used={used})"
