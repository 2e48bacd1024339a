"""On-disk cache of compiled build scripts."""

from __future__ import annotations

import contextlib
import logging
import marshal
import os
import time
from dataclasses import dataclass
from enum import Enum
from importlib.util import MAGIC_NUMBER
from pathlib import Path
from types import CodeType

from .errors import CacheError

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".gantc"


class CacheStatus(Enum):
    HIT = "hit"
    STALE = "stale"
    MISS = "miss"
    ERROR = "error"


@dataclass
class CacheLookup:
    """Outcome of a cache lookup; ``code`` is set only on a hit."""

    status: CacheStatus
    code: CodeType | None = None
    error: CacheError | None = None

    @property
    def usable(self) -> bool:
        return self.status is CacheStatus.HIT


class ScriptCache:
    """One compiled artifact per script class name.

    An artifact is the interpreter magic number followed by a marshalled
    code object. Its mtime is compared against the source file's mtime.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def artifact(self, class_name: str) -> Path:
        return self.directory / f"{class_name}{ARTIFACT_SUFFIX}"

    def lookup(self, class_name: str, modified: float) -> CacheLookup:
        """Find a usable compiled artifact for a source modified at ``modified``."""
        path = self.artifact(class_name)
        try:
            if not path.is_file():
                logger.debug("No cached artifact for '%s'", class_name)
                return CacheLookup(CacheStatus.MISS)
            if path.stat().st_mtime < modified:
                logger.debug("Cached artifact for '%s' is older than its source", class_name)
                return CacheLookup(CacheStatus.STALE)
            data = path.read_bytes()
        except OSError as exc:
            return self._error(class_name, f"cannot read {path}: {exc}")

        if data[: len(MAGIC_NUMBER)] != MAGIC_NUMBER:
            return self._error(class_name, f"{path} was compiled by a different interpreter")
        try:
            code = marshal.loads(data[len(MAGIC_NUMBER) :])
        except (EOFError, ValueError, TypeError) as exc:
            return self._error(class_name, f"{path} is corrupt: {exc}")
        if not isinstance(code, CodeType):
            return self._error(class_name, f"{path} does not contain compiled code")

        logger.debug("Using cached artifact %s", path)
        return CacheLookup(CacheStatus.HIT, code=code)

    def _error(self, class_name: str, reason: str) -> CacheLookup:
        logger.debug("Cannot use cached artifact for '%s': %s", class_name, reason)
        return CacheLookup(CacheStatus.ERROR, error=CacheError(reason))

    def store(self, class_name: str, code: CodeType) -> Path | None:
        """Write a compiled artifact; failures are logged and absorbed."""
        path = self.artifact(class_name)
        tmp = path.with_name(f"{path.name}.tmp-{os.getpid()}-{time.time_ns()}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(MAGIC_NUMBER + marshal.dumps(code))
            os.replace(tmp, path)
        except (OSError, ValueError) as exc:
            logger.warning("Cannot write cache artifact %s: %s", path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink()
            return None
        logger.debug("Cached '%s' at %s", class_name, path)
        return path
