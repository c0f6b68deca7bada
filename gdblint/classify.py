# gdblint/classify.py
"""
Reference candidate classification.

Extraction is deliberately greedy: every leading word of a clause and every
``$name`` token is a candidate.  ``Classifier`` throws out the candidates
that cannot be user symbols.  The checks run cheapest first and the first
hit wins; whatever survives is a genuine reference, including tokens that
only look almost numeric.
"""

from __future__ import annotations

import enum
import re
from typing import FrozenSet, Optional

from gdblint.trie import CommandTrie

GDB_KEYWORDS: FrozenSet[str] = frozenset({
    "if",
    "else",
    "while",
    "end",
    "loop_break",
    "loop_continue",
})

_HISTORY_RE = re.compile(r"\${0,2}[0-9]*", re.ASCII)
_FUNC_ARG_RE = re.compile(r"\$?arg[0-9]+", re.ASCII)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?[0-9]*\.[0-9]+", re.ASCII)


class Verdict(enum.Enum):
    """Why a candidate was kept or dropped."""

    REFERENCE = "reference"
    HISTORY = "history variable"
    FUNC_ARG = "function argument"
    COMMAND = "gdb command"
    KEYWORD = "keyword"
    INTEGER = "integer literal"
    FLOAT = "floating-point literal"


def is_history_var(token: str) -> bool:
    """``$``, ``$$``, ``$N``, ``$$N`` (and a bare digit run)."""
    return _HISTORY_RE.fullmatch(token) is not None


def is_func_arg(token: str) -> bool:
    return _FUNC_ARG_RE.fullmatch(token) is not None


def is_gdb_keyword(token: str) -> bool:
    return token in GDB_KEYWORDS


def is_number(token: str) -> bool:
    return _INTEGER_RE.fullmatch(token) is not None


def is_floating_point(token: str) -> bool:
    return _FLOAT_RE.fullmatch(token) is not None


class Classifier:
    """
    Decide whether extracted tokens are user symbols.

    Parameters
    ----------
    commands:
        The gdb command vocabulary.  ``None`` behaves like an empty trie.
    abbreviations:
        Also drop tokens that are a prefix of some command, the way gdb
        accepts unambiguous abbreviations (``b`` for ``break``).
    """

    def __init__(
        self,
        commands: Optional[CommandTrie] = None,
        abbreviations: bool = False,
    ) -> None:
        self.commands = commands if commands is not None else CommandTrie()
        self.abbreviations = abbreviations

    def is_gdb_command(self, token: str) -> bool:
        if self.abbreviations:
            return self.commands.has_prefix(token)
        return self.commands.contains(token)

    def classify(self, token: str) -> Verdict:
        if is_history_var(token):
            return Verdict.HISTORY
        if is_func_arg(token):
            return Verdict.FUNC_ARG
        if self.is_gdb_command(token):
            return Verdict.COMMAND
        if is_gdb_keyword(token):
            return Verdict.KEYWORD
        if is_number(token):
            return Verdict.INTEGER
        if is_floating_point(token):
            return Verdict.FLOAT
        return Verdict.REFERENCE

    def is_valid_reference(self, token: str) -> bool:
        return self.classify(token) is Verdict.REFERENCE

    __call__ = is_valid_reference
