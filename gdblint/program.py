# gdblint/program.py
"""
gdblint/program.py
══════════════════

Per-run state and the lint pipeline.

    gdb / cache ──► defs + trie
    script ──────► LineMap ──► extract_definitions ──► defs
                          └──► extract_references ──► refs (via Classifier)
    defs, refs ──► generate_findings ──► LintResult

``ProgramData`` owns both tables, the command trie and the line map and
releases them once, whichever way the run ends.
"""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from gdblint import cache
from gdblint.cache import CacheFile
from gdblint.classify import Classifier
from gdblint.config import LintConfig
from gdblint.errors import CacheFormatError, CollaboratorError, ResourceError
from gdblint.extract import extract_definitions, extract_references
from gdblint.gdb import GdbCollaborator
from gdblint.lines import LineMap, read_lines
from gdblint.report import Finding, ReportOptions, display_name, generate_findings
from gdblint.symtab import SymbolTable
from gdblint.trie import CommandTrie

logger = logging.getLogger(__name__)


class ProgramData:
    """Everything one lint run knows."""

    def __init__(self, check_duplicates: bool = False) -> None:
        self.archs: List[str] = []
        self.linemap = LineMap()
        self.defs = SymbolTable(check_duplicates=check_duplicates)
        self.refs = SymbolTable(check_duplicates=check_duplicates)
        self.trie = CommandTrie()
        self._closed = False

    @property
    def width(self) -> int:
        return self.linemap.width

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self.defs.destroy()
        self.refs.destroy()
        self.trie.clear()
        self.linemap.clear()
        self._closed = True

    def __enter__(self) -> "ProgramData":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ProgramData(defs={len(self.defs)}, refs={len(self.refs)}, "
            f"commands={len(self.trie)}, lines={len(self.linemap)})"
        )


@dataclass
class LintResult:
    findings: List[Finding] = field(default_factory=list)
    width: int = 1
    path: Optional[str] = None
    cache_hit: bool = False

    @property
    def count(self) -> int:
        return len(self.findings)


def _make_collaborator(config: LintConfig) -> GdbCollaborator:
    return GdbCollaborator(executable=config.gdb, timeout=config.timeout)


def bootstrap(
    data: ProgramData,
    config: LintConfig,
    collaborator: Optional[GdbCollaborator] = None,
) -> bool:
    """Load gdb built-ins into *data*, from the cache when possible.

    On a cache miss gdb is queried and, if that works, the built-ins are
    written back to the cache.  Returns ``True`` on a cache hit.  A gdb
    failure is logged and leaves *data* with whatever was loaded; cache
    directory and file failures raise ``ResourceError``.
    """
    with CacheFile(config.cache_dir, config.arch) as cache_file:
        if config.use_cache:
            source = cache_file.open_for_read()
            if source is not None:
                try:
                    if cache.load(data, source) > 0:
                        logger.info("using cache %s", cache_file.path)
                        return True
                except CacheFormatError as exc:
                    logger.info("ignoring damaged cache %s: %s", cache_file.path, exc)
                data.defs.destroy()
                data.trie.clear()
            cache_file.close()

        collaborator = collaborator or _make_collaborator(config)
        try:
            collaborator.load(data, config.arch)
        except CollaboratorError as exc:
            logger.warning("could not load GDB data: %s", exc)
            return False

        if config.use_cache:
            sink = cache_file.open_for_write()
            written = cache.store(data, sink, where=lambda symbol: symbol.is_builtin)
            logger.info("cached %d built-ins in %s", written, cache_file.path)
    return False


def _open_stdin() -> TextIO:
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin
    return io.TextIOWrapper(buffer, encoding="utf-8", errors="replace", newline="")


def _close_input(stream: TextIO) -> None:
    if stream is sys.stdin:
        return
    if isinstance(stream, io.TextIOWrapper) and stream.buffer is getattr(sys.stdin, "buffer", None):
        # leave the process stdin open
        stream.detach()
        return
    stream.close()


def _open_input(config: LintConfig) -> TextIO:
    if config.display_path is None:
        return _open_stdin()
    try:
        return open(config.file, "r", encoding="utf-8", errors="replace", newline="")
    except OSError as exc:
        raise ResourceError("cannot read script", config.file, exc) from exc


def analyze(
    data: ProgramData,
    stream: TextIO,
    config: LintConfig,
) -> List[Finding]:
    """Run extraction and the report pass over *stream* using *data*."""
    data.linemap = read_lines(stream, max_length=config.max_line_length)

    classifier = Classifier(data.trie, abbreviations=config.abbreviations)
    ndefs = extract_definitions(data.linemap, data.defs)
    nrefs = extract_references(data.linemap, data.refs, classifier)
    logger.info("%d definitions, %d references", ndefs, nrefs)

    return generate_findings(
        data.defs,
        data.refs,
        display_name(config.file),
        ReportOptions.from_config(config),
    )


def lint(
    config: LintConfig,
    stream: Optional[TextIO] = None,
    collaborator: Optional[GdbCollaborator] = None,
) -> LintResult:
    """Lint one script end to end.

    *stream* overrides ``config.file`` as the script source.  Raises
    ``ResourceError`` when the script or the cache cannot be used.
    """
    owned = stream is None
    source = _open_input(config) if owned else stream
    try:
        with ProgramData(check_duplicates=config.check_duplicates) as data:
            hit = bootstrap(data, config, collaborator)
            findings = analyze(data, source, config)
            return LintResult(
                findings=findings,
                width=data.width,
                path=config.display_path,
                cache_hit=hit,
            )
    finally:
        if owned:
            _close_input(source)


def list_architectures(
    config: LintConfig,
    collaborator: Optional[GdbCollaborator] = None,
) -> List[str]:
    """Architectures supported by the configured gdb."""
    collaborator = collaborator or _make_collaborator(config)
    return collaborator.architectures()


def clear_cache(config: LintConfig) -> int:
    """Remove cached built-ins for every architecture."""
    return CacheFile(config.cache_dir, config.arch).clear()
