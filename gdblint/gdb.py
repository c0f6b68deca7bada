# gdblint/gdb.py
"""
gdblint/gdb.py
══════════════

Queries a gdb executable for what it defines on its own.

    gdb -batch -ex 'set architecture'             → architecture list
    gdb -batch -ex 'help all'                     → command vocabulary
    gdb -batch -ex 'show convenience'             → convenience variables
    gdb -batch -ex 'set architecture ARCH'
               -ex 'maintenance print registers'
               -ex 'maintenance print user-registers'  → register names

The parsers are plain functions over captured text so they can be tested
against canned output.  ``GdbCollaborator`` runs the queries and fills a
``ProgramData`` with the results: commands go into the trie, variables and
registers into the definitions table as built-ins (line ``0``).
"""

from __future__ import annotations

import logging
import platform
import re
import subprocess
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from gdblint.errors import CollaboratorError
from gdblint.symtab import SymbolKind

if TYPE_CHECKING:
    from gdblint.program import ProgramData

logger = logging.getLogger(__name__)

DEFAULT_GDB: str = "gdb"
DEFAULT_TIMEOUT: float = 60.0

ARCH_MARKER: str = "Valid arguments are "

# Built into gdb but not listed by ``show convenience`` until first set.
EXTRA_CONVENIENCE_VARIABLES: Tuple[str, ...] = (
    "_",
    "__",
    "_exitcode",
    "_exitsignal",
    "_exception",
    "_ada_exception",
    "_probe_argc",
    *(f"_probe_arg{i}" for i in range(12)),
    "_sdata",
    "_siginfo",
    "_thread",
    "_gthread",
    "_inferior_thread_count",
    "_gdb_major",
    "_gdb_minor",
    "_shell_exitcode",
    "_shell_exitsignal",
    "bpnum",
    "cdir",
)

# Commands that only exist inside other constructs.
EXTRA_COMMANDS: Tuple[str, ...] = ("silent",)

_ARCH_SPLIT_RE = re.compile(r"[., \t\r\n]+")
_FIELD_SPLIT_RE = re.compile(r"[, \t\r\n]+")


# ── output parsers ──────────────────────────────────────────────────────

def parse_architectures(text: str) -> List[str]:
    """Architecture names from the error text of a bare ``set architecture``.

    The list follows ``Valid arguments are `` and ends at the first token
    starting with ``--``.
    """
    archs: List[str] = []
    for line in text.splitlines():
        marker = line.find(ARCH_MARKER)
        if marker < 0:
            continue
        for token in _ARCH_SPLIT_RE.split(line[marker + len(ARCH_MARKER):]):
            if not token:
                continue
            if token.startswith("--"):
                break
            archs.append(token)
    return archs


def parse_commands(text: str) -> List[str]:
    """Command names and aliases from ``help all``.

    Only lines starting with a lowercase letter describe commands.  The part
    before `` -- `` is a comma separated list of the command and its
    aliases; each entry contributes its first word.
    """
    commands: List[str] = []
    for line in text.splitlines():
        if not line or not (line[0].isalpha() and line[0].islower()):
            continue
        names, _, _ = line.partition(" -- ")
        for piece in names.split(","):
            words = piece.split()
            if words:
                commands.append(words[0])
    return commands


def parse_convenience_variables(text: str) -> List[str]:
    """Variable names (without ``$``) from ``show convenience``."""
    names: List[str] = []
    for line in text.splitlines():
        if not line.startswith("$"):
            continue
        if "internal function" in line:
            continue
        fields = [f for f in _FIELD_SPLIT_RE.split(line[1:]) if f]
        if fields:
            names.append(fields[0])
    return names


def parse_registers(text: str) -> List[str]:
    """Register names from ``maintenance print [user-]registers``.

    Header rows start with an uppercase letter; unnamed registers show up
    as ``''`` and are skipped.
    """
    names: List[str] = []
    for line in text.splitlines():
        line = line.lstrip()
        if not line or line[0].isupper():
            continue
        fields = [f for f in _FIELD_SPLIT_RE.split(line) if f]
        if not fields or fields[0].startswith("'"):
            continue
        names.append(fields[0])
    return names


def system_arch_hint(hint: Optional[str] = None) -> str:
    """*hint* or the machine name, with ``_`` turned into ``-``."""
    return (hint or platform.machine()).replace("_", "-")


def resolve_arch(archs: Sequence[str], hint: Optional[str] = None) -> Optional[str]:
    """Pick the first architecture containing the (system) hint."""
    wanted = system_arch_hint(hint)
    if not wanted:
        return hint
    for arch in archs:
        if wanted in arch:
            return arch
    return hint


# ── subprocess driver ───────────────────────────────────────────────────

class GdbCollaborator:
    """
    Runs gdb in batch mode.

    Parameters
    ----------
    executable:
        gdb binary name or path.
    timeout:
        Seconds allowed per invocation.
    """

    def __init__(self, executable: str = DEFAULT_GDB, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.executable = executable
        self.timeout = timeout

    def run(self, *commands: str, merge_stderr: bool = False) -> str:
        """Run gdb with one ``-ex`` per command and return its output.

        Raises ``CollaboratorError`` if gdb cannot be started, times out or
        prints nothing.  Undecodable bytes in the output are replaced.
        """
        argv = [self.executable, "-batch"]
        for command in commands:
            argv.extend(("-ex", command))
        label = " ".join(argv)
        logger.debug("running %s", label)

        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CollaboratorError("gdb not found", label, exc) from exc
        except subprocess.TimeoutExpired as exc:
            raise CollaboratorError(
                f"gdb timed out after {self.timeout:g}s", label, exc
            ) from exc
        except UnicodeDecodeError as exc:
            raise CollaboratorError("gdb output is not text", label, exc) from exc
        except OSError as exc:
            raise CollaboratorError("cannot run gdb", label, exc) from exc

        output = result.stdout or ""
        if merge_stderr and result.stderr:
            output += result.stderr
        if not output.strip():
            raise CollaboratorError("gdb produced no output", label)
        return output

    # ── queries ──────────────────────────────────────────────────────

    def architectures(self) -> List[str]:
        archs = parse_architectures(self.run("set architecture", merge_stderr=True))
        if not archs:
            raise CollaboratorError("no architectures in gdb output", "set architecture")
        logger.info("gdb: %d architectures", len(archs))
        return archs

    def commands(self) -> List[str]:
        commands = parse_commands(self.run("help all"))
        if not commands:
            raise CollaboratorError("no commands in gdb output", "help all")
        logger.info("gdb: %d commands", len(commands))
        return commands

    def convenience_variables(self) -> List[str]:
        names = parse_convenience_variables(self.run("show convenience"))
        logger.info("gdb: %d convenience variables", len(names))
        return names

    def registers(self, arch: Optional[str] = None) -> List[str]:
        names = parse_registers(self.run(
            f"set architecture {arch or 'auto'}",
            "maintenance print registers",
            "maintenance print user-registers",
        ))
        logger.info("gdb: %d registers for %s", len(names), arch or "auto")
        return names

    # ── bulk load ────────────────────────────────────────────────────

    def load(self, data: "ProgramData", arch_hint: Optional[str] = None) -> str:
        """Fill *data* with everything gdb knows.

        Returns the architecture the registers were read for.  Any failure
        raises ``CollaboratorError``; *data* may be partially filled then.
        """
        data.archs = self.architectures()
        arch = resolve_arch(data.archs, arch_hint)
        logger.debug("architecture: %s", arch)

        for command in self.commands():
            _insert_command(data, command)
        for command in EXTRA_COMMANDS:
            _insert_command(data, command)

        for name in self.convenience_variables():
            data.defs.insert(name, 0, SymbolKind.VARIABLE)
        for name in EXTRA_CONVENIENCE_VARIABLES:
            data.defs.insert(name, 0, SymbolKind.VARIABLE)

        for name in self.registers(arch):
            data.defs.insert(name, 0, SymbolKind.VARIABLE)

        return arch or "auto"


def _insert_command(data: "ProgramData", command: str) -> None:
    try:
        data.trie.insert(command)
    except ValueError as exc:
        logger.debug("ignoring command %r: %s", command, exc)
