# gdblint/errors.py
"""
gdblint error types
═══════════════════

Exception hierarchy for the linter pipeline.

    GdbLintError (base)
    ├── ResourceError       - input, cache file or cache directory failures
    ├── CacheFormatError    - truncated or non-conforming cache data
    └── CollaboratorError   - gdb missing, failing or producing no output

Only ``ResourceError`` is fatal for a lint run.  A ``CacheFormatError``
makes the caller treat the cache as cold, and a ``CollaboratorError``
degrades classification (nothing is known about gdb built-ins) but the
script is still linted.  Findings are never raised.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class GdbLintError(Exception):
    """Base exception for all gdblint errors."""

    exit_code: int = 2

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ResourceError(GdbLintError):
    """A file or directory the run depends on could not be used."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause)
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        text = self.message
        if self.path is not None:
            text = f"{text}: {self.path}"
        if self.cause is not None:
            text = f"{text} ({self.cause})"
        return text


class CacheFormatError(GdbLintError):
    """Cache data does not follow the cache grammar."""

    def __init__(self, message: str, offset: int = -1) -> None:
        super().__init__(message)
        self.offset = offset

    def __str__(self) -> str:
        if self.offset >= 0:
            return f"{self.message} (at offset {self.offset})"
        return self.message


class CollaboratorError(GdbLintError):
    """gdb could not be queried or its output could not be parsed."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause)
        self.command = command

    def __str__(self) -> str:
        text = self.message
        if self.command:
            text = f"{text} [{self.command}]"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text
