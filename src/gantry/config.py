"""Run configuration assembled from command-line options and environment variables."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from .context import Verbosity
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BUILD_FILE = "build.gant"
STDIN_BUILD_FILE = "-"
GANTLIB_VAR = "GANTLIB"
HOME_VAR = "GANTRY_HOME"


def user_dir() -> Path:
    return Path.home() / ".gantry"


def default_cache_dir() -> Path:
    return user_dir() / "cache"


def split_paths(values: Iterable[str]) -> list[Path]:
    """Split path-separator lists (``a:b`` on POSIX) into paths, dropping blanks."""
    return [Path(item) for value in values for item in value.split(os.pathsep) if item]


def default_gantlib(environ: Mapping[str, str] | None = None) -> list[Path]:
    environ = environ if environ is not None else os.environ
    value = environ.get(GANTLIB_VAR)
    return split_paths([value]) if value else []


def tool_libraries(environ: Mapping[str, str] | None = None) -> list[Path]:
    """Library entries from the user directory and ``$GANTRY_HOME/lib``."""
    environ = environ if environ is not None else os.environ
    directories = [user_dir() / "lib"]
    if home := environ.get(HOME_VAR):
        directories.append(Path(home) / "lib")

    entries: list[Path] = []
    for directory in directories:
        if not directory.is_dir():
            continue
        entries.append(directory)
        entries.extend(
            sorted(p for p in directory.iterdir() if p.suffix in {".zip", ".whl"})
        )
    return entries


def parse_define(definition: str) -> tuple[str, str]:
    """Split a ``name=value`` definition; a bare name gets an empty value."""
    name, _, value = definition.partition("=")
    if not name:
        raise ConfigurationError(f"Invalid definition '{definition}'")
    return name, value


class Options(BaseModel):
    """Everything a single run needs to know."""

    build_file: str = DEFAULT_BUILD_FILE
    cache_enabled: bool = False
    cache_dir: Path | None = None
    gantlib: list[Path] = Field(default_factory=list)
    classpath: list[Path] = Field(default_factory=list)
    defines: dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False
    verbosity: Verbosity = Verbosity.NORMAL
    render: bool = False
    list_targets: bool = False
    targets: list[str] = Field(default_factory=list)

    @property
    def cache_directory(self) -> Path:
        if self.cache_enabled and self.cache_dir is not None:
            return self.cache_dir
        return default_cache_dir()

    @property
    def from_stdin(self) -> bool:
        return self.build_file == STDIN_BUILD_FILE

    @classmethod
    def from_args(
        cls,
        args: argparse.Namespace,
        environ: Mapping[str, str] | None = None,
    ) -> Options:
        verbosity = Verbosity.NORMAL
        if args.quiet:
            verbosity = Verbosity.QUIET
        if args.silent:
            verbosity = Verbosity.SILENT
        if args.verbose:
            verbosity = Verbosity.VERBOSE

        gantlib = split_paths(args.gantlib) if args.gantlib else default_gantlib(environ)
        defines = dict(parse_define(d) for d in args.defines)

        options = cls(
            build_file=args.gantfile or DEFAULT_BUILD_FILE,
            cache_enabled=args.usecache,
            cache_dir=Path(args.cachedir) if args.cachedir else None,
            gantlib=gantlib,
            classpath=split_paths(args.classpath),
            defines=defines,
            dry_run=args.dry_run,
            verbosity=verbosity,
            render=args.render,
            list_targets=args.projecthelp or args.targets_list,
            targets=args.targets,
        )
        logger.debug("Options: %s", options)
        return options
