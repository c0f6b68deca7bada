"""gdblint: static checks for GDB command scripts.

Reports references to user commands and convenience variables that are
never defined, and definitions that are never used.

Submodules
----------
lines
    Continuation-aware logical line reconstruction (``LineReader``,
    ``LineMap``).

symtab
    Fixed-bucket FNV-1a symbol table (``SymbolTable``, ``Symbol``,
    ``SymbolKind``).

trie
    ``CommandTrie`` over the gdb command vocabulary, with a compact text
    encoding.

cache
    On-disk cache of gdb built-ins (``CacheFile``, ``store``, ``load``).

extract / classify
    Definition and reference extraction and candidate filtering.

report
    Finding generation and the human and bash renderers.

gdb
    ``GdbCollaborator``: batch-mode gdb queries and their output parsers.

program
    ``ProgramData`` and the ``lint()`` pipeline.

main
    CLI entry point.

Usage
-----
Command-line::

    gdblint [OPTIONS] [FILE]

Programmatic::

    from gdblint import LintConfig, lint

    result = lint(LintConfig(file="commands.gdb", use_cache=False))
    for finding in result.findings:
        print(finding.format(result.width))
"""

__version__ = "0.1.0"

from gdblint.config import LintConfig
from gdblint.errors import CacheFormatError, CollaboratorError, GdbLintError, ResourceError
from gdblint.program import LintResult, ProgramData, lint
from gdblint.report import Finding, FindingCategory, ReportOptions
from gdblint.symtab import Symbol, SymbolKind, SymbolTable
from gdblint.trie import CommandTrie

__all__ = [
    "__version__",
    "CacheFormatError",
    "CollaboratorError",
    "CommandTrie",
    "Finding",
    "FindingCategory",
    "GdbLintError",
    "LintConfig",
    "LintResult",
    "ProgramData",
    "ReportOptions",
    "ResourceError",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "lint",
]
