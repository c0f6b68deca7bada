# gdblint/config.py
"""Run configuration, built from command-line arguments and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from gdblint.cache import default_cache_dir
from gdblint.gdb import DEFAULT_GDB, DEFAULT_TIMEOUT
from gdblint.lines import MAX_LINE_LENGTH

COLOR_MODES = ("auto", "always", "never")

ENV_GDB = "GDBLINT_GDB"
ENV_CACHE_DIR = "GDBLINT_CACHE_DIR"
ENV_TIMEOUT = "GDBLINT_GDB_TIMEOUT"


@dataclass
class LintConfig:
    """Tuning knobs for one lint run."""
    file: Optional[str] = None
    script_mode: bool = False
    arch: Optional[str] = None

    no_warn_undefined: bool = False
    no_warn_undefined_function: bool = False
    no_warn_undefined_variable: bool = False
    no_warn_unused: bool = False
    no_warn_unused_function: bool = False
    no_warn_unused_variable: bool = False

    check_duplicates: bool = False
    abbreviations: bool = False
    color: str = "auto"

    gdb: str = DEFAULT_GDB
    cache_dir: Path = field(default_factory=default_cache_dir)
    use_cache: bool = True
    timeout: float = DEFAULT_TIMEOUT
    max_line_length: int = MAX_LINE_LENGTH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "LintConfig":
        """Defaults, then ``GDBLINT_*`` variables, then *overrides*.

        A ``GDBLINT_GDB_TIMEOUT`` that is not a number is kept as ``nan`` so
        that ``validate()`` reports it.
        """
        env = os.environ if environ is None else environ
        values = {}
        if env.get(ENV_GDB):
            values["gdb"] = env[ENV_GDB]
        if env.get(ENV_CACHE_DIR):
            values["cache_dir"] = Path(env[ENV_CACHE_DIR]).expanduser()
        if env.get(ENV_TIMEOUT):
            try:
                values["timeout"] = float(env[ENV_TIMEOUT])
            except ValueError:
                values["timeout"] = float("nan")
        values.update(overrides)
        return cls(**values)

    @property
    def display_path(self) -> Optional[str]:
        """Absolute path of the input file, ``None`` for standard input."""
        if self.file is None or self.file == "-":
            return None
        return os.path.realpath(self.file)

    def validate(self) -> List[str]:
        """Return a list of problems (empty if valid)."""
        problems: List[str] = []
        if self.color not in COLOR_MODES:
            problems.append(f"color must be one of {', '.join(COLOR_MODES)}")
        if not self.timeout > 0:
            problems.append(f"{ENV_TIMEOUT} must be a positive number of seconds")
        if self.max_line_length <= 0:
            problems.append("max_line_length must be positive")
        if not self.gdb:
            problems.append(f"{ENV_GDB} must name a gdb executable")
        if self.arch is not None and not self.arch.strip():
            problems.append("arch must not be empty")
        return problems
