# gdblint/trie.py
"""
gdblint/trie.py
═══════════════

Prefix tree over the gdb command vocabulary.

Keys are restricted to the 94 printable, non-space ASCII characters
``'!'`` (0x21) to ``'~'`` (0x7e).  Inserting a word with any other
character raises ``ValueError``; looking one up simply fails to match.

Serialized form
───────────────

Pre-order, children visited in character order.  For every child the
encoder writes the character, a ``' '`` if that child ends a command, then
the child's body.  Every body, the root's included, is closed by one
``' '``.  A newline ends the section::

    {"b", "bt"}     →  "b t    \\n"
                        ││││││└─ close root body
                        │││││└─ close "b" body
                        ││││└─ close "bt" body
                        │││└─ "t" is terminal
                        ││└─ "t"
                        │└─ "b" is terminal
                        └─ "b"

A non-terminal node always has children, so a space right after a
character can only be the terminal marker.  Both directions are iterative,
so deep vocabularies never hit the recursion limit.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, TextIO, Tuple

from gdblint.errors import CacheFormatError

logger = logging.getLogger(__name__)

ALPHABET_BASE: str = "!"
ALPHABET_SIZE: int = 94

TERMINAL_MARK: str = " "
BODY_END: str = " "
SECTION_END: str = "\n"


def char_index(ch: str) -> int:
    """Dense index of *ch* in the trie alphabet, or ``-1`` if out of range."""
    index = ord(ch) - ord(ALPHABET_BASE)
    if 0 <= index < ALPHABET_SIZE:
        return index
    return -1


class TrieNode:
    """One node; ``children`` maps alphabet characters to nodes."""

    __slots__ = ("children", "end")

    def __init__(self) -> None:
        self.children: Dict[str, TrieNode] = {}
        self.end: bool = False

    def child(self, ch: str) -> Optional["TrieNode"]:
        return self.children.get(ch)

    def sorted_children(self) -> List[Tuple[str, "TrieNode"]]:
        return sorted(self.children.items(), key=lambda item: char_index(item[0]))


class CommandTrie:
    """Membership test for gdb commands."""

    def __init__(self) -> None:
        self.root = TrieNode()
        self._count = 0

    # ── building ─────────────────────────────────────────────────────

    def insert(self, word: str) -> Optional[TrieNode]:
        """Register *word* and return its terminal node.

        Empty words are ignored.  Raises ``ValueError`` when *word*
        contains a character outside the alphabet; the trie is left
        untouched in that case.
        """
        if not word:
            return None

        for position, ch in enumerate(word):
            if char_index(ch) < 0:
                raise ValueError(
                    f"character {ch!r} at position {position} of {word!r} "
                    f"is outside the command alphabet"
                )

        node = self.root
        for ch in word:
            nxt = node.children.get(ch)
            if nxt is None:
                nxt = node.children[ch] = TrieNode()
            node = nxt

        if not node.end:
            node.end = True
            self._count += 1
        return node

    # ── lookup ───────────────────────────────────────────────────────

    def find(self, word: str) -> Tuple[int, Optional[TrieNode]]:
        """Walk *word* as far as the trie allows.

        Returns ``(matched_length, node)``.  ``node`` is the node reached
        after consuming the whole word, or ``None`` when a child was missing
        (``matched_length`` then tells how far the walk got).
        """
        node = self.root
        matched = 0
        for ch in word:
            nxt = node.children.get(ch)
            if nxt is None:
                return matched, None
            node = nxt
            matched += 1
        return matched, node

    def contains(self, word: str) -> bool:
        """True iff *word* is a registered command."""
        if not word:
            return False
        matched, node = self.find(word)
        return node is not None and matched == len(word) and node.end

    __contains__ = contains

    def has_prefix(self, word: str) -> bool:
        """True iff *word* is a prefix of at least one registered command."""
        if not word:
            return False
        _, node = self.find(word)
        return node is not None

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[str]:
        """Registered commands in character order."""
        stack: List[Tuple[str, TrieNode]] = [("", self.root)]
        while stack:
            prefix, node = stack.pop()
            if node.end:
                yield prefix
            for ch, child in reversed(node.sorted_children()):
                stack.append((prefix + ch, child))

    # ── teardown ─────────────────────────────────────────────────────

    def clear(self) -> None:
        """Release every node without recursing."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            stack.extend(node.children.values())
            node.children.clear()
        self.root = TrieNode()
        self._count = 0

    destroy = clear

    # ── serialization ────────────────────────────────────────────────

    def serialize(self, sink: TextIO) -> int:
        """Write the encoding of this trie to *sink*; return chars written."""
        written = 0
        stack: List[Iterator[Tuple[str, TrieNode]]] = [
            iter(self.root.sorted_children())
        ]
        while stack:
            for ch, child in stack[-1]:
                sink.write(ch)
                written += 1
                if child.end:
                    sink.write(TERMINAL_MARK)
                    written += 1
                stack.append(iter(child.sorted_children()))
                break
            else:
                stack.pop()
                sink.write(BODY_END)
                written += 1
        sink.write(SECTION_END)
        return written + 1

    @classmethod
    def deserialize(cls, source: TextIO) -> "CommandTrie":
        """Rebuild a trie from its encoding read off *source*.

        Consumes exactly the section, including its trailing newline when
        present.  Raises ``CacheFormatError`` on truncated input or on a
        character outside the alphabet.
        """
        trie = cls()
        stack: List[TrieNode] = [trie.root]
        offset = 0
        pending: Optional[str] = None

        while stack:
            if pending is not None:
                ch, pending = pending, None
            else:
                ch = source.read(1)
                offset += 1

            if ch == "":
                raise CacheFormatError("command trie section is truncated", offset)

            if ch == BODY_END:
                stack.pop()
                continue

            if char_index(ch) < 0:
                raise CacheFormatError(
                    f"unexpected character {ch!r} in command trie", offset
                )

            node = TrieNode()
            stack[-1].children[ch] = node

            marker = source.read(1)
            offset += 1
            if marker == TERMINAL_MARK:
                node.end = True
                trie._count += 1
            else:
                pending = marker
            stack.append(node)

        tail = source.read(1)
        if tail not in ("", SECTION_END):
            raise CacheFormatError(
                f"trailing data {tail!r} after command trie", offset + 1
            )

        logger.debug("deserialized %d commands", trie._count)
        return trie

    def __repr__(self) -> str:
        return f"CommandTrie(commands={self._count})"
