"""Resolver — expand ${...} property references in task arguments."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

# ``$${name}`` is an escaped literal; group 1 marks the escape.
_REFERENCE = re.compile(r"\$(\$?)\{([^{}]+)\}")


class Resolver:
    """Expand ``${name}`` references against task properties.

    A property name may itself contain dots (``build.dir``). Any other
    dotted name is followed through mappings and attributes, which is how
    ``${env.HOME}`` reaches the process environment.
    """

    def __init__(self, properties: Mapping[str, Any] | None = None) -> None:
        self.properties = properties if properties is not None else {}

    def lookup(self, ref: str) -> Any:
        ref = ref.strip()
        if ref in self.properties:
            return self.properties[ref]

        value: Any = self.properties
        for part in ref.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            elif not isinstance(value, Mapping) and hasattr(value, part):
                value = getattr(value, part)
            else:
                raise ValueError(f"undefined property '{ref}'")
        return value

    def _substitute(self, match: re.Match[str]) -> str:
        escaped, ref = match.groups()
        if escaped:
            return "${" + ref + "}"
        return str(self.lookup(ref))

    def expand(self, value: str) -> Any:
        """Expand references in ``value``.

        A value consisting of a single reference returns the referenced
        object itself; references embedded in text are stringified.
        """
        whole = _REFERENCE.fullmatch(value)
        if whole and not whole.group(1):
            return self.lookup(whole.group(2))
        expanded = _REFERENCE.sub(self._substitute, value)
        if expanded != value:
            logger.debug("Expanded '%s' -> '%s'", value, expanded)
        return expanded
