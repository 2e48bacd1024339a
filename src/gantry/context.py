"""Runtime execution context shared by the runner and the task facade."""

from __future__ import annotations

from enum import IntEnum


class Verbosity(IntEnum):
    SILENT = 0
    QUIET = 1
    NORMAL = 2
    VERBOSE = 3


class Context:
    """Runtime state passed through one run."""

    def __init__(
        self,
        *,
        dry_run: bool = False,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        self.dry_run = dry_run
        self.verbosity = verbosity

    @property
    def silent(self) -> bool:
        return self.verbosity <= Verbosity.SILENT
