# gdblint/report.py
"""
gdblint/report.py
═════════════════

Diffs the definitions table against the references table and renders the
resulting findings.

Two categories exist:

    Undefined   a reference with no definition of the same name and kind
    Unused      a script definition that nothing references

Findings are produced in a stable order: every undefined reference first,
then every unused definition, each walking the table bucket by bucket and
each chain from its most recent entry.

Renderers
─────────

Human output, one finding per line, then a two-line summary::

    break.gdb:01: Undefined func: 'foo' is referenced at line 1 but never defined
    File: /home/me/break.gdb
    Found: 1 issue(s)

Script output is a sourceable bash fragment::

    export GDBLINT_REPORTS=(\\
      "break.gdb:01: Undefined func: ...\\n"\\
    );
    export GDBLINT_NREPORTS=1;
"""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass, fields
from typing import Iterable, List, Optional, Sequence, TextIO

from termcolor import colored

from gdblint.symtab import Symbol, SymbolKind, SymbolTable

STDIN_LABEL: str = "STDIN"


class FindingCategory(enum.Enum):
    """
    Category of a finding.

    Each member carries:
      • label: word opening the message
      • color: termcolor colour name
    """

    UNDEFINED = ("Undefined", "red")
    UNUSED = ("Unused", "yellow")

    def __init__(self, label: str, color: str) -> None:
        self.label = label
        self.color = color


@dataclass(frozen=True)
class Finding:
    file: str
    line: int
    category: FindingCategory
    kind: SymbolKind
    name: str

    @property
    def message(self) -> str:
        if self.category is FindingCategory.UNDEFINED:
            return (
                f"Undefined {self.kind.label}: '{self.name}' is referenced "
                f"at line {self.line} but never defined"
            )
        return (
            f"Unused {self.kind.label}: '{self.name}' defined "
            f"at line {self.line} is never used"
        )

    def location(self, width: int = 1) -> str:
        return f"{self.file}:{str(self.line).zfill(width)}"

    def format(self, width: int = 1) -> str:
        return f"{self.location(width)}: {self.message}"


@dataclass
class ReportOptions:
    """Warning switches.  Every field defaults to reporting."""

    no_warn_undefined: bool = False
    no_warn_undefined_function: bool = False
    no_warn_undefined_variable: bool = False
    no_warn_unused: bool = False
    no_warn_unused_function: bool = False
    no_warn_unused_variable: bool = False

    @classmethod
    def from_config(cls, config: object) -> "ReportOptions":
        return cls(**{
            f.name: bool(getattr(config, f.name, False)) for f in fields(cls)
        })

    def suppresses_undefined(self, kind: SymbolKind) -> bool:
        if self.no_warn_undefined:
            return True
        if kind is SymbolKind.FUNCTION:
            return self.no_warn_undefined_function
        return self.no_warn_undefined_variable

    def suppresses_unused(self, kind: SymbolKind) -> bool:
        if self.no_warn_unused:
            return True
        if kind is SymbolKind.FUNCTION:
            return self.no_warn_unused_function
        return self.no_warn_unused_variable


def display_name(path: Optional[str]) -> str:
    """Basename of *path*, or ``STDIN`` for standard input."""
    if not path or path == "-":
        return STDIN_LABEL
    return os.path.basename(path)


# ── finding generation ──────────────────────────────────────────────────

def _has_match(table: SymbolTable, symbol: Symbol) -> bool:
    return table.find(symbol.name, symbol.kind) is not None


def undefined_findings(
    defs: SymbolTable,
    refs: SymbolTable,
    file: str,
    options: Optional[ReportOptions] = None,
) -> List[Finding]:
    options = options or ReportOptions()
    findings: List[Finding] = []
    for ref in refs:
        if options.suppresses_undefined(ref.kind):
            continue
        if not _has_match(defs, ref):
            findings.append(Finding(
                file, ref.first_line, FindingCategory.UNDEFINED, ref.kind, ref.name
            ))
    return findings


def unused_findings(
    defs: SymbolTable,
    refs: SymbolTable,
    file: str,
    options: Optional[ReportOptions] = None,
) -> List[Finding]:
    options = options or ReportOptions()
    findings: List[Finding] = []
    for definition in defs:
        if definition.is_builtin:
            continue
        if options.suppresses_unused(definition.kind):
            continue
        if not _has_match(refs, definition):
            findings.append(Finding(
                file, definition.first_line, FindingCategory.UNUSED,
                definition.kind, definition.name,
            ))
    return findings


def generate_findings(
    defs: SymbolTable,
    refs: SymbolTable,
    file: str = STDIN_LABEL,
    options: Optional[ReportOptions] = None,
) -> List[Finding]:
    """All findings, undefined references first."""
    return (
        undefined_findings(defs, refs, file, options)
        + unused_findings(defs, refs, file, options)
    )


# ── rendering ───────────────────────────────────────────────────────────

def use_color(mode: str, stream: TextIO) -> bool:
    """Resolve ``auto``/``always``/``never`` for *stream*."""
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def render_human(
    findings: Sequence[Finding],
    path: Optional[str],
    width: int = 1,
    stream: Optional[TextIO] = None,
    color: bool = False,
) -> None:
    """Write findings and the summary in the human readable format."""
    out = stream or sys.stdout
    for finding in findings:
        if color:
            location = colored(finding.location(width), attrs=["bold"], force_color=True)
            message = colored(finding.message, finding.category.color, force_color=True)
            out.write(f"{location}: {message}\n")
        else:
            out.write(f"{finding.format(width)}\n")

    if findings:
        out.write(f"File: {path or STDIN_LABEL}\n")
        out.write(f"Found: {len(findings)} issue(s)\n")


def shell_quote(text: str) -> str:
    """Escape *text* for a double-quoted bash string."""
    for ch in ("\\", '"', "$", "`"):
        text = text.replace(ch, "\\" + ch)
    return text


def script_lines(findings: Iterable[Finding], width: int = 1) -> List[str]:
    lines = ["export GDBLINT_REPORTS=(\\"]
    count = 0
    for finding in findings:
        lines.append(f'  "{shell_quote(finding.format(width))}\\n"\\')
        count += 1
    lines.append(");")
    lines.append(f"export GDBLINT_NREPORTS={count};")
    return lines


def render_script(
    findings: Sequence[Finding],
    width: int = 1,
    stream: Optional[TextIO] = None,
) -> None:
    """Write findings as a bash fragment exporting two variables."""
    out = stream or sys.stdout
    for line in script_lines(findings, width):
        out.write(line + "\n")
