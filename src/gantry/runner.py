"""Runner — one build run from configured options to an exit status."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from .cache import ScriptCache
from .config import Options, tool_libraries
from .context import Context
from .dispatch import Dispatcher
from .environment import Environment
from .errors import ConfigurationError
from .loader import ScriptLoader, ScriptUnit

logger = logging.getLogger(__name__)


class Runner:
    """Configure an environment, load the build file, then list or dispatch."""

    def __init__(self, options: Options, *, stdin: TextIO | None = None) -> None:
        self.options = options
        self.stdin = stdin
        self.context = Context(dry_run=options.dry_run, verbosity=options.verbosity)
        self.env = Environment(self.context, gantlib=options.gantlib)

        cache = ScriptCache(options.cache_directory) if options.cache_enabled else None
        render_context = None
        if options.render:
            render_context = {"env": dict(os.environ), **options.defines}
        self.loader = ScriptLoader(cache, render_context=render_context)

    def _extend_search_path(self) -> None:
        for entry in [*self.options.classpath, *tool_libraries()]:
            item = str(entry)
            if item not in sys.path:
                logger.debug("Adding %s to the search path", item)
                sys.path.append(item)

    def _read_script(self) -> ScriptUnit:
        if self.options.from_stdin:
            return ScriptUnit.from_stream(self.stdin)
        return ScriptUnit.from_file(self.options.build_file)

    def configure(self) -> None:
        """Apply defines, cache settings and search paths to the environment."""
        if self.options.cache_enabled and self.options.render:
            raise ConfigurationError("Caching cannot be combined with rendering the build file.")
        for name, value in self.options.defines.items():
            self.env.define(name, value)
        self.env.bind("cache_enabled", self.options.cache_enabled)
        self.env.bind("cache_directory", self.options.cache_directory)
        self._extend_search_path()

    def process(self) -> int:
        """Run the build; configuration and compilation errors propagate."""
        self.configure()
        unit = self._read_script()
        if self.options.cache_enabled and not unit.file_backed:
            raise ConfigurationError("Caching can only be used in combination with the -f option.")

        status = self.loader.load(unit, self.env)
        if status is not None:
            logger.debug("Cache status for %s: %s", unit.display_name, status.value)

        dispatcher = Dispatcher(self.env)
        if self.options.list_targets:
            return dispatcher.list_targets()
        return dispatcher.dispatch(self.options.targets)
