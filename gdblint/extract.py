# gdblint/extract.py
"""
Definition and reference extraction.

Both passes are pattern matches over logical lines, not a parse of the gdb
command language.  Comments are removed first; everything from the first
unescaped ``#`` to the end of the line is ignored.

Definitions
    ``define NAME``                                  → function
    ``set $NAME ...``                                → variable
    ``python ... set_convenience_variable("NAME",`` → variable

References
    The leading word of every ``;``-separated clause made only of word
    tokens is a function candidate; every ``$NAME`` is a variable
    candidate.  Candidates go through the ``Classifier`` before they are
    recorded.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, List, Optional, Tuple

from gdblint.classify import Classifier
from gdblint.lines import LogicalLine
from gdblint.symtab import SymbolKind, SymbolTable

logger = logging.getLogger(__name__)

DEFINE_RE = re.compile(r"^\s*define\s+([A-Za-z0-9_-]+)")
SET_RE = re.compile(r"^\s*set\s+\$([A-Za-z0-9_-]+)")
PY_SETVAR_RE = re.compile(
    r"""^\s*python.*set_convenience_variable\(["']?([A-Za-z0-9_-]+)["']?,"""
)

FUNC_REF_RE = re.compile(
    r"(^\s*|;\s*)([A-Za-z0-9_-]+)(\s+[$A-Za-z0-9_-]+)*\s*(;|$)"
)
VAR_REF_RE = re.compile(r"\$([A-Za-z0-9_-]+)")

_DEFINE_LINE_RE = re.compile(r"^\s*define\s")
_SET_LINE_RE = re.compile(r"^\s*set\s")
_COMMENT_RE = re.compile(r"(?<!\\)#")

_DEFINITION_PATTERNS: Tuple[Tuple[re.Pattern, SymbolKind], ...] = (
    (DEFINE_RE, SymbolKind.FUNCTION),
    (SET_RE, SymbolKind.VARIABLE),
    (PY_SETVAR_RE, SymbolKind.VARIABLE),
)


def strip_comment(text: str) -> str:
    """Cut *text* at its first ``#`` not preceded by a backslash."""
    match = _COMMENT_RE.search(text)
    if match is None:
        return text
    return text[: match.start()]


def match_definition(text: str) -> Optional[Tuple[str, SymbolKind]]:
    """Return ``(name, kind)`` for a defining line, else ``None``.

    At most one definition is recognised per line.
    """
    for pattern, kind in _DEFINITION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1), kind
    return None


def reference_region(text: str) -> Optional[str]:
    """The part of *text* that may hold references, or ``None`` to skip it.

    ``define`` headers hold no references.  For ``set`` lines only the
    assignment's right-hand side counts, starting at the ``=``, so the value
    never reads as the head of a clause; a ``set`` with no ``=`` is skipped.
    """
    if _DEFINE_LINE_RE.match(text):
        return None
    if _SET_LINE_RE.match(text):
        equals = text.find("=")
        if equals < 0:
            return None
        return text[equals:]
    return text


def iter_function_candidates(text: str) -> Iterator[str]:
    """Leading words of clauses, left to right, without overlap."""
    cursor = 0
    while cursor < len(text):
        match = FUNC_REF_RE.search(text[cursor:])
        if match is None:
            break
        yield match.group(2)
        if match.end() == 0:
            break
        cursor += match.end()


def iter_variable_candidates(text: str) -> Iterator[str]:
    for match in VAR_REF_RE.finditer(text):
        yield match.group(1)


def extract_definitions(lines: Iterable[LogicalLine], defs: SymbolTable) -> int:
    """Record every definition found in *lines* into *defs*.

    Returns the number of definitions recorded.
    """
    found = 0
    for line in lines:
        text = strip_comment(line.text)
        hit = match_definition(text)
        if hit is None:
            continue
        name, kind = hit
        logger.debug("line %d: definition %s %r", line.line_number, kind.label, name)
        if defs.insert(name, line.line_number, kind) is not None:
            found += 1
    return found


def extract_references(
    lines: Iterable[LogicalLine],
    refs: SymbolTable,
    classifier: Classifier,
) -> int:
    """Record every accepted reference found in *lines* into *refs*.

    Returns the number of references recorded.
    """
    found = 0
    for line in lines:
        region = reference_region(strip_comment(line.text))
        if not region:
            continue

        candidates: List[Tuple[str, SymbolKind]] = [
            (name, SymbolKind.FUNCTION) for name in iter_function_candidates(region)
        ]
        candidates.extend(
            (name, SymbolKind.VARIABLE) for name in iter_variable_candidates(region)
        )

        for name, kind in candidates:
            if not classifier.is_valid_reference(name):
                logger.debug(
                    "line %d: dropped %s candidate %r (%s)",
                    line.line_number, kind.label, name, classifier.classify(name).value,
                )
                continue
            logger.debug("line %d: reference %s %r", line.line_number, kind.label, name)
            if refs.insert(name, line.line_number, kind) is not None:
                found += 1
    return found
