# gdblint/cache.py
"""
gdblint/cache.py
════════════════

Persistent cache of gdb built-ins.

Querying gdb for its commands, convenience variables and registers takes
seconds, so the result is stored per architecture and reloaded on later
runs.

File format
───────────

    defs
    <bucket_index>,<name>,<kind>,<line>      zero or more records
    <command trie encoding>

``kind`` is the integer value of ``SymbolKind``.  Records of one bucket are
written oldest first; the loader prepends, so chains come back in the
order they were stored.  The record grammar is a small PEG evaluated with
parsimonious, one line at a time.  The first line that does not parse ends
the record section and the stream is rewound to its start, which is where
the trie encoding begins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional, TextIO, Tuple, TYPE_CHECKING

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from gdblint.errors import CacheFormatError, ResourceError
from gdblint.symtab import Symbol, SymbolKind, SymbolTable, bucket_index
from gdblint.trie import CommandTrie

if TYPE_CHECKING:
    from gdblint.program import ProgramData

logger = logging.getLogger(__name__)

CACHE_HEADER: str = "defs\n"

CACHE_RECORD_GRAMMAR = Grammar(r'''
    record      = index sep name sep kind sep line eol
    index       = ~"[0-9]+"
    name        = ~"[^,\r\n]+"
    kind        = ~"[0-9]+"
    line        = ~"[0-9]+"
    sep         = ","
    eol         = "\n"
''')

SymbolFilter = Callable[[Symbol], bool]


class CacheRecordVisitor(NodeVisitor):
    """Turns one parsed record into ``(index, name, kind, line)``."""

    def visit_record(self, node, visited_children):
        index, _, name, _, kind, _, line, _ = visited_children
        return index, name, kind, line

    def visit_index(self, node, visited_children):
        return int(node.text)

    def visit_name(self, node, visited_children):
        return node.text

    def visit_kind(self, node, visited_children):
        return int(node.text)

    def visit_line(self, node, visited_children):
        return int(node.text)

    def generic_visit(self, node, visited_children):
        return visited_children or node


_visitor = CacheRecordVisitor()


def parse_record(text: str) -> Tuple[int, str, SymbolKind, int]:
    """Parse one record line, terminator included.

    Raises ``CacheFormatError`` when the line does not follow the record
    grammar, names an unknown kind, or sits in the wrong bucket.
    """
    try:
        index, name, kind, line = _visitor.visit(CACHE_RECORD_GRAMMAR.parse(text))
    except (ParseError, VisitationError) as exc:
        raise CacheFormatError(f"malformed cache record {text!r}") from exc

    try:
        symbol_kind = SymbolKind(kind)
    except ValueError:
        raise CacheFormatError(f"unknown symbol kind {kind} in {text!r}") from None

    if index != bucket_index(name):
        raise CacheFormatError(
            f"record for {name!r} is filed under bucket {index}, "
            f"expected {bucket_index(name)}"
        )
    return index, name, symbol_kind, line


def format_record(index: int, symbol: Symbol) -> Optional[str]:
    if "," in symbol.name or "\n" in symbol.name or "\r" in symbol.name:
        return None
    return f"{index},{symbol.name},{int(symbol.kind)},{symbol.first_line}\n"


# ── definitions section ─────────────────────────────────────────────────

def store_definitions(
    table: SymbolTable,
    sink: TextIO,
    where: Optional[SymbolFilter] = None,
) -> int:
    """Write the header and one record per symbol of *table*.

    *where* restricts the records to the symbols it accepts.  Returns the
    number of records written.
    """
    sink.write(CACHE_HEADER)
    written = 0
    for index, chain in table.buckets():
        for symbol in reversed(chain):
            if where is not None and not where(symbol):
                continue
            record = format_record(index, symbol)
            if record is None:
                logger.warning("cannot cache symbol %r, skipping", symbol.name)
                continue
            sink.write(record)
            written += 1
    logger.debug("stored %d definition records", written)
    return written


def load_definitions(table: SymbolTable, source: TextIO) -> int:
    """Read definition records from *source* into *table*.

    Returns the number of records loaded; ``0`` when the header is missing.
    Stops at the first line that is not a valid record and leaves *source*
    positioned at the start of that line.
    """
    start = source.tell()
    if source.readline() != CACHE_HEADER:
        source.seek(start)
        return 0

    loaded = 0
    while True:
        position = source.tell()
        text = source.readline()
        if not text:
            break
        try:
            index, name, kind, line = parse_record(text)
        except CacheFormatError as exc:
            logger.debug("end of definition records: %s", exc)
            source.seek(position)
            break
        table.attach(index, Symbol(name=name, kind=kind, first_line=line))
        loaded += 1

    logger.debug("loaded %d definition records", loaded)
    return loaded


# ── whole cache ─────────────────────────────────────────────────────────

def store(data: "ProgramData", sink: TextIO, where: Optional[SymbolFilter] = None) -> int:
    """Write the definitions then the command trie of *data* to *sink*.

    Returns the number of definition records written.
    """
    written = store_definitions(data.defs, sink, where=where)
    data.trie.serialize(sink)
    sink.flush()
    return written


def load(data: "ProgramData", source: TextIO) -> int:
    """Fill *data* from a cache stream; return the definitions loaded.

    Raises ``CacheFormatError`` when the trie section is damaged.
    """
    loaded = load_definitions(data.defs, source)
    if loaded == 0:
        return 0
    data.trie = CommandTrie.deserialize(source)
    logger.info(
        "cache: %d definitions, %d commands", loaded, len(data.trie)
    )
    return loaded


# ── cache file handle ───────────────────────────────────────────────────

CACHE_FILE_PREFIX: str = "commands-"
CACHE_FILE_SUFFIX: str = ".cache"


def default_cache_dir() -> Path:
    """``$GDBLINT_CACHE_DIR``, else ``$XDG_CACHE_HOME/gdblint``, else
    ``~/.cache/gdblint``."""
    explicit = os.environ.get("GDBLINT_CACHE_DIR")
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg).expanduser() / "gdblint"
    return Path.home() / ".cache" / "gdblint"


class CacheFile:
    """
    The on-disk cache for one architecture.

    At most one handle is open at a time; reopening closes the previous
    one.  Use as a context manager so the handle is released on every exit
    path.
    """

    def __init__(self, directory: Optional[Path] = None, arch: Optional[str] = None) -> None:
        self.directory = Path(directory) if directory is not None else default_cache_dir()
        self.arch = arch or "auto"
        self._handle: Optional[TextIO] = None

    @property
    def path(self) -> Path:
        safe = self.arch.replace(os.sep, "_")
        return self.directory / f"{CACHE_FILE_PREFIX}{safe}{CACHE_FILE_SUFFIX}"

    def exists(self) -> bool:
        return self.path.is_file()

    def _ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceError("cannot create cache directory", self.directory, exc) from exc

    def open_for_read(self) -> Optional[TextIO]:
        """Open the cache for reading; ``None`` when there is no cache yet."""
        self.close()
        try:
            self._handle = open(self.path, "r", encoding="utf-8", newline="")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ResourceError("cannot read cache file", self.path, exc) from exc
        return self._handle

    def open_for_write(self) -> TextIO:
        """Create or truncate the cache and open it for writing."""
        self.close()
        self._ensure_directory()
        try:
            self._handle = open(self.path, "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise ResourceError("cannot write cache file", self.path, exc) from exc
        return self._handle

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def clear(self) -> int:
        """Remove every cache file in the directory; return how many."""
        self.close()
        if not self.directory.is_dir():
            return 0
        removed = 0
        for entry in self.directory.glob(f"{CACHE_FILE_PREFIX}*{CACHE_FILE_SUFFIX}"):
            try:
                entry.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise ResourceError("cannot remove cache file", entry, exc) from exc
            removed += 1
        logger.info("removed %d cache file(s) from %s", removed, self.directory)
        return removed

    def __enter__(self) -> "CacheFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CacheFile({str(self.path)!r})"
