"""Script loading — read, render, compile and evaluate build files."""

from __future__ import annotations

import logging
import re
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from types import CodeType
from typing import TYPE_CHECKING, Any, TextIO

import jinja2

from .cache import CacheStatus, ScriptCache
from .errors import CompilationError, ConfigurationError, EvaluationError

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)

STDIN_CLASS_NAME = "standard_input"
STDIN_FILENAME = "<stdin>"
STDIN_DISPLAY_NAME = "Standard input"

_NON_IDENTIFIER = re.compile(r"\W")


def class_name_for(filename: str) -> str:
    """Derive a script class name from a file name (``build.gant`` -> ``build_gant``)."""
    name = _NON_IDENTIFIER.sub("_", Path(filename).name)
    if name[:1].isdigit():
        name = f"_{name}"
    return name


@dataclass(frozen=True)
class ScriptUnit:
    """Build script source plus the identity used for caching and error reports."""

    source: str
    class_name: str
    filename: str
    path: Path | None = None
    modified: float = -1.0

    @classmethod
    def from_file(cls, path: str | Path) -> ScriptUnit:
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Cannot open file {path}")
        try:
            source = path.read_text()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Cannot open file {path}: {exc}") from exc
        return cls(
            source=source,
            class_name=class_name_for(path.name),
            filename=str(path),
            path=path,
            modified=path.stat().st_mtime,
        )

    @classmethod
    def from_stream(cls, stream: TextIO | None = None) -> ScriptUnit:
        stream = stream if stream is not None else sys.stdin
        return cls(source=stream.read(), class_name=STDIN_CLASS_NAME, filename=STDIN_FILENAME)

    @classmethod
    def from_text(cls, source: str, *, filename: str = STDIN_FILENAME) -> ScriptUnit:
        return cls(source=source, class_name=class_name_for(filename), filename=filename)

    @property
    def file_backed(self) -> bool:
        return self.path is not None

    @property
    def display_name(self) -> str:
        if self.path is None:
            return STDIN_DISPLAY_NAME if self.filename == STDIN_FILENAME else self.filename
        return self.path.name


def render_script(unit: ScriptUnit, context: dict[str, Any]) -> ScriptUnit:
    """Render the script source as a Jinja2 template."""
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    try:
        source = env.from_string(unit.source).render(context)
    except jinja2.TemplateError as exc:
        lines = [exc.lineno] if getattr(exc, "lineno", None) else []
        raise CompilationError(str(exc), source_name=unit.display_name, lines=lines) from exc
    return ScriptUnit(
        source=source,
        class_name=unit.class_name,
        filename=unit.filename,
        path=unit.path,
        modified=unit.modified,
    )


def compile_script(unit: ScriptUnit) -> CodeType:
    """Compile script source, reporting the failing line on syntax errors."""
    logger.debug("Compiling %s", unit.filename)
    try:
        return compile(unit.source, unit.filename, "exec", dont_inherit=True)
    except SyntaxError as exc:
        lines = [exc.lineno] if exc.lineno else []
        raise CompilationError(exc.msg, source_name=unit.display_name, lines=lines) from exc
    except ValueError as exc:
        raise CompilationError(str(exc), source_name=unit.display_name) from exc


def evaluate(code: CodeType, unit: ScriptUnit, env: Environment) -> None:
    """Execute compiled script code against the environment's namespace."""
    env.bind("__name__", unit.class_name)
    if unit.path is not None:
        env.bind("__file__", str(unit.path))
    try:
        exec(code, env.namespace)
    except Exception as exc:
        # Cached code keeps the filename it was compiled under.
        source_name = Path(unit.filename).name
        frames = traceback.extract_tb(exc.__traceback__)
        lines = [f.lineno for f in frames if Path(f.filename).name == source_name and f.lineno]
        message = str(exc) or type(exc).__name__
        raise EvaluationError(message, source_name=unit.display_name, lines=lines) from exc


class ScriptLoader:
    """Obtain executable code for a script, through the cache when one is given."""

    def __init__(
        self,
        cache: ScriptCache | None = None,
        *,
        render_context: dict[str, Any] | None = None,
    ) -> None:
        self.cache = cache
        self.render_context = render_context

    @property
    def caching(self) -> bool:
        return self.cache is not None

    def load(self, unit: ScriptUnit, env: Environment) -> CacheStatus | None:
        """Evaluate the script into ``env``.

        Returns the cache status that decided where the code came from, or
        None when caching is disabled.
        """
        if self.cache is None:
            if self.render_context is not None:
                unit = render_script(unit, self.render_context)
            evaluate(compile_script(unit), unit, env)
            return None

        if not unit.file_backed:
            raise ConfigurationError("Caching can only be used in combination with a build file.")
        if self.render_context is not None:
            raise ConfigurationError("Caching cannot be combined with rendering the build file.")

        result = self.cache.lookup(unit.class_name, unit.modified)
        if result.usable:
            code = result.code
        else:
            if result.status is CacheStatus.ERROR:
                logger.debug("Recompiling %s: %s", unit.display_name, result.error)
            code = compile_script(unit)
            self.cache.store(unit.class_name, code)

        evaluate(code, unit, env)
        return result.status
