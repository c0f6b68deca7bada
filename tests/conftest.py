# tests/conftest.py
"""Shared fixtures: a small gdb vocabulary, a fake gdb and an isolated cache."""

import io

import pytest

from gdblint.config import LintConfig
from gdblint.gdb import GdbCollaborator
from gdblint.program import ProgramData, analyze
from gdblint.trie import CommandTrie

BASIC_COMMANDS = (
    "break",
    "commands",
    "continue",
    "define",
    "document",
    "echo",
    "info",
    "print",
    "printf",
    "python",
    "run",
    "set",
    "silent",
)

BASIC_VARIABLES = ("_siginfo", "bpnum", "_exitcode")

BASIC_REGISTERS = ("rax", "rbx", "rip", "rsp", "pc", "sp")

MISSING_GDB = "/nonexistent/gdblint-test-gdb"


class FakeGdb(GdbCollaborator):
    """Answers gdb queries from canned lists and counts the calls."""

    def __init__(
        self,
        archs=("i386", "i386:x86-64", "aarch64"),
        commands=BASIC_COMMANDS,
        variables=BASIC_VARIABLES,
        registers=BASIC_REGISTERS,
    ):
        super().__init__(executable=MISSING_GDB, timeout=1.0)
        self._archs = list(archs)
        self._commands = list(commands)
        self._variables = list(variables)
        self._registers = list(registers)
        self.calls = []

    def architectures(self):
        self.calls.append("architectures")
        return list(self._archs)

    def commands(self):
        self.calls.append("commands")
        return list(self._commands)

    def convenience_variables(self):
        self.calls.append("convenience_variables")
        return list(self._variables)

    def registers(self, arch=None):
        self.calls.append(("registers", arch))
        return list(self._registers)


def build_commands(words=BASIC_COMMANDS):
    trie = CommandTrie()
    for word in words:
        trie.insert(word)
    return trie


@pytest.fixture
def commands():
    return build_commands()


@pytest.fixture
def fake_gdb():
    return FakeGdb()


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    """A private cache directory, also exported to the environment."""
    path = tmp_path / "cache"
    monkeypatch.setenv("GDBLINT_CACHE_DIR", str(path))
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    return path


@pytest.fixture
def no_gdb(monkeypatch):
    """Point the CLI at a gdb that does not exist."""
    monkeypatch.setenv("GDBLINT_GDB", MISSING_GDB)
    return MISSING_GDB


@pytest.fixture
def config(cache_dir):
    return LintConfig(cache_dir=cache_dir, use_cache=False, gdb=MISSING_GDB)


@pytest.fixture
def analyze_text(config):
    """Run extraction and reporting over a script held in a string."""

    def _analyze(text, trie=None, **overrides):
        cfg = config
        for key, value in overrides.items():
            setattr(cfg, key, value)
        with ProgramData(check_duplicates=cfg.check_duplicates) as data:
            data.trie = trie if trie is not None else build_commands()
            return analyze(data, io.StringIO(text), cfg)

    return _analyze
