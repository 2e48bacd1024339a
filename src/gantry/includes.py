"""Include mechanisms for reusable target bundles and tool classes."""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Sequence
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError
from .loader import ScriptUnit, compile_script

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)

BUNDLE_SUFFIXES = (".gant", ".py")


def _is_path_reference(item: str | Path) -> bool:
    """True when ``item`` names a file rather than a bundle."""
    if isinstance(item, Path):
        return True
    return os.sep in item or "/" in item or item.endswith(BUNDLE_SUFFIXES)


class IncludeTargets:
    """Evaluate target bundles into the shared namespace.

    Scripts write ``include_targets << "clean"`` or ``include_targets("clean")``.
    A bundle is either a path to a file or a name searched for in the
    library directories and then among the built-in bundles.
    """

    def __init__(self, env: Environment, gantlib: Sequence[Path] = ()) -> None:
        self._env = env
        self._gantlib = gantlib
        self.loaded: list[str] = []

    def __lshift__(self, item: str | Path) -> IncludeTargets:
        self.include(item)
        return self

    def __call__(self, *items: str | Path) -> IncludeTargets:
        for item in items:
            self.include(item)
        return self

    def find(self, item: str | Path) -> tuple[str, str]:
        """Return the (source name, source text) of a bundle."""
        name = str(item)
        if _is_path_reference(item):
            path = Path(item)
            if not path.is_file():
                raise ConfigurationError(f"Cannot find target bundle '{name}'")
            return str(path), path.read_text()

        for directory in self._gantlib:
            for suffix in BUNDLE_SUFFIXES:
                candidate = directory / f"{name}{suffix}"
                if candidate.is_file():
                    logger.debug("Found bundle '%s' at %s", name, candidate)
                    return str(candidate), candidate.read_text()

        builtin = resources.files("gantry.bundles").joinpath(f"{name}.gant")
        if builtin.is_file():
            logger.debug("Using built-in bundle '%s'", name)
            return f"<gantry.bundles.{name}>", builtin.read_text()

        raise ConfigurationError(f"Cannot find target bundle '{name}'")

    def include(self, item: str | Path) -> None:
        filename, source = self.find(item)
        if filename in self.loaded:
            logger.debug("Bundle %s already included", filename)
            return
        logger.debug("Including bundle %s", filename)
        unit = ScriptUnit.from_text(source, filename=filename)
        exec(compile_script(unit), self._env.namespace)
        self.loaded.append(filename)


class IncludeTool:
    """Instantiate tool classes with the environment and bind them by class name."""

    def __init__(self, env: Environment) -> None:
        self._env = env

    def __lshift__(self, item: type | str) -> IncludeTool:
        self.include(item)
        return self

    def __call__(self, *items: type | str) -> IncludeTool:
        for item in items:
            self.include(item)
        return self

    @staticmethod
    def resolve(item: type | str) -> type:
        """Import a tool class from a ``module:Class`` or ``module.Class`` reference."""
        if isinstance(item, type):
            return item
        module_name, sep, class_name = item.partition(":")
        if not sep:
            module_name, _, class_name = item.rpartition(".")
        if not module_name or not class_name:
            raise ConfigurationError(f"Invalid tool reference '{item}'")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise ConfigurationError(f"Cannot import tool module '{module_name}': {exc}") from exc
        try:
            return getattr(module, class_name)
        except AttributeError:
            raise ConfigurationError(f"Module '{module_name}' has no tool '{class_name}'") from None

    def include(self, item: type | str) -> Any:
        tool_cls = self.resolve(item)
        instance = tool_cls(self._env)
        logger.debug("Binding tool '%s'", tool_cls.__name__)
        self._env.bind(tool_cls.__name__, instance)
        return instance
