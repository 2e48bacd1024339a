"""Environment — the binding namespace build scripts execute in."""

from __future__ import annotations

import logging
import os
import warnings
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from .context import Context
from .errors import ConfigurationError, MissingBindingError
from .includes import IncludeTargets, IncludeTool
from .targets import DEFAULT_TARGET, Target, TargetRegistry
from .tasks import TaskRunner

logger = logging.getLogger(__name__)

MESSAGE_TAG_WIDTH = 9


def format_message(tag: str, text: str) -> str:
    """Format a tagged message with the tag right-aligned to a fixed column."""
    padding = max(MESSAGE_TAG_WIDTH - len(tag), 0)
    return f"{' ' * padding}[{tag}] {text}"


class Environment(Mapping[str, Any]):
    """Names bound for one run: targets, helpers and user variables.

    The underlying dict is used directly as the globals of the build
    script, so a target body calls another target simply by name.
    """

    def __init__(
        self,
        context: Context | None = None,
        *,
        gantlib: Sequence[str | Path] = (),
    ) -> None:
        self.context = context if context is not None else Context()
        self.registry = TargetRegistry()
        self.tasks = TaskRunner(self.context)
        self.gantlib = [Path(p) for p in gantlib]
        self._bindings: dict[str, Any] = {}

        self.bind("binding", self)
        self.bind("environ", dict(os.environ))
        self.bind("gantlib", self.gantlib)
        self.bind("tasks", self.tasks)
        self.bind("include_targets", IncludeTargets(self, self.gantlib))
        self.bind("include_tool", IncludeTool(self))
        self.bind("target", self.register)
        self.bind("task", self.task)
        self.bind("setdefault", self.set_default)
        self.bind("message", self.message)

    @property
    def namespace(self) -> dict[str, Any]:
        """The live binding dict, suitable as globals for exec()."""
        return self._bindings

    def bind(self, name: str, value: Any) -> None:
        self._bindings[name] = value

    def define(self, name: str, value: str) -> None:
        """Bind a value and expose it as a task property."""
        logger.debug("Defining '%s'", name)
        self.tasks.property(name, value)
        self.bind(name, value)

    def lookup(self, name: str) -> Any:
        try:
            return self._bindings[name]
        except KeyError:
            raise MissingBindingError(name) from None

    def invoke(self, name: str) -> Any:
        """Look up a binding by name and call it."""
        return self.lookup(name)()

    def register(
        self,
        pair: Mapping[str, str | None] | None = None,
        body: Callable[[], Any] | None = None,
        /,
        **named: str | None,
    ) -> Any:
        """Register a target from a single ``{name: description}`` pair.

        Without a body, returns a decorator:

            @target(clean="Remove build products")
            def clean():
                ...
        """
        if pair is None:
            pair = named
        elif named:
            raise ConfigurationError("target() takes a mapping or keyword arguments, not both")
        if not isinstance(pair, Mapping) or len(pair) != 1:
            raise ConfigurationError("target() requires exactly one name: description pair")
        ((name, description),) = pair.items()

        if body is None:

            def decorator(fn: Callable[[], Any]) -> Target:
                return self._bind_target(name, description, fn)

            return decorator
        return self._bind_target(name, description, body)

    def _bind_target(self, name: str, description: str | None, body: Callable[[], Any]) -> Target:
        if name in self._bindings:
            logger.debug("Replacing binding '%s'", name)
        if description:
            self.registry.record(name, description)
        target = Target(name=name, description=description, body=body)
        self.bind(name, target)
        self.bind(f"{name}_description", description)
        logger.debug("Registered target '%s'", name)
        return target

    def task(self, *args: Any, **kwargs: Any) -> Any:
        """Deprecated alias for target()."""
        warnings.warn(
            "Use of task instead of target is deprecated.",
            FutureWarning,
            stacklevel=2,
        )
        return self.register(*args, **kwargs)

    def _find_target_name(self, ref: Any) -> str | None:
        candidates = [(k, v) for k, v in self._bindings.items() if isinstance(v, Target)]
        for key, value in candidates:
            if value is ref:
                return key
        for key, value in candidates:
            if value.body is ref:
                return key
        return None

    def set_default(self, ref: Target | Callable[[], Any] | str) -> Target:
        """Nominate a target, by reference or by name, as the default target."""
        if isinstance(ref, str):
            if not isinstance(self.get(ref), Target):
                raise ConfigurationError(
                    f"Target {ref} does not exist so cannot be made the default."
                )
            name = ref
        elif callable(ref):
            name = self._find_target_name(ref)
            if name is None:
                raise ConfigurationError("Parameter to setdefault is not a known target.")
        else:
            raise ConfigurationError(
                "Parameter to setdefault is of the wrong type -- must be a target reference or a string."
            )

        logger.debug("Default target is '%s'", name)
        return self.register({DEFAULT_TARGET: name}, lambda: self.invoke(name))

    def message(self, tag: str, text: str) -> None:
        print(format_message(tag, text))

    def __getitem__(self, name: str) -> Any:
        return self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"Environment(bindings={len(self)}, targets={len(self.registry)})"
