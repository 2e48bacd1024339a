"""Target model and the name-ordered description registry."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_TARGET = "default"


class Target(BaseModel):
    """A named, described, deferred unit of work."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    description: str | None = None
    body: Callable[[], Any]

    def __call__(self) -> Any:
        logger.debug("Running target '%s'", self.name)
        return self.body()

    def run(self) -> Any:
        return self()

    @property
    def documented(self) -> bool:
        return bool(self.description)


class TargetRegistry(Mapping[str, str]):
    """Target descriptions keyed by name, iterated in name order."""

    def __init__(self) -> None:
        self._descriptions: dict[str, str] = {}

    def record(self, name: str, description: str) -> None:
        self._descriptions[name] = description

    def __getitem__(self, name: str) -> str:
        return self._descriptions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._descriptions))

    def __len__(self) -> int:
        return len(self._descriptions)

    @property
    def default(self) -> str | None:
        """Description of the default target, if one was registered."""
        return self._descriptions.get(DEFAULT_TARGET)

    def listing(self) -> list[str]:
        """Format the registry as the lines printed by the target listing."""
        names = [name for name in self if name != DEFAULT_TARGET]
        width = max((len(name) for name in names), default=0)

        lines = [""]
        lines.extend(f" {name.ljust(width)}  {self[name]}" for name in names)
        lines.append("")
        if self.default is not None:
            lines.append(f"Default target is {self.default}.")
            lines.append("")
        return lines

    def __repr__(self) -> str:
        return f"TargetRegistry(targets={len(self)})"
