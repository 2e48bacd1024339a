"""Error taxonomy and process exit codes."""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class ExitCode(IntEnum):
    """Stable process exit values a caller can branch on."""

    OK = 0
    CONFIGURATION_ERROR = 1
    EVALUATION_ERROR = 2
    TARGET_MISSING = 11
    DEFAULT_MISSING = 12
    DISPATCH_FAILED = 13


class GantryError(Exception):
    """Base class for all gantry errors."""


class ConfigurationError(GantryError):
    """Bad option combination, unreadable build file or bad target reference."""


class CompilationError(GantryError):
    """The build file could not be compiled."""

    def __init__(
        self,
        message: str,
        *,
        source_name: str | None = None,
        lines: Iterable[int] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.lines = list(lines)

    def __str__(self) -> str:
        location = ""
        if self.source_name is not None:
            location = "".join(f"{self.source_name}, line {n} -- " for n in self.lines)
        return f"{location}Error evaluating gantfile: {self.message}"


class EvaluationError(CompilationError):
    """The build file compiled but raised while it was being evaluated."""


class MissingBindingError(GantryError, LookupError):
    """A name is not bound in the environment."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No such binding: '{name}'")
        self.name = name


class TargetExecutionError(GantryError):
    """A task failed while a target body was running."""


class CacheError(GantryError):
    """A cached script could not be used; always recovered by recompiling."""
