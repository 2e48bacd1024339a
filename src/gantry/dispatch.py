"""Dispatcher — run requested targets and classify failures."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from .environment import Environment
from .errors import ExitCode, MissingBindingError
from .targets import DEFAULT_TARGET

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def missing_binding_message(target: str, exc: NameError | MissingBindingError) -> str:
    """Describe a missing name hit while running ``target``.

    A missing name equal to the target means the target itself is not
    bound; anything else is a name the target body failed to resolve. The
    distinction is best-effort: a body referencing a missing name that
    happens to equal its own target name is reported as a missing target.
    """
    method = getattr(exc, "name", None)
    if method == target:
        return f"Target {method} does not exist."
    return f"Could not execute method {method}.\n{exc}"


class Dispatcher:
    """Runs targets bound in an environment."""

    def __init__(self, env: Environment) -> None:
        self.env = env
        self.state = DispatchState.IDLE

    def _missing(self, name: str, exc: NameError | MissingBindingError) -> None:
        # An unbound local or a NameError without a name is a body failure.
        if isinstance(exc, UnboundLocalError) or getattr(exc, "name", None) is None:
            raise exc
        print(missing_binding_message(name, exc))

    def _run(self, name: str) -> None:
        self.state = DispatchState.RESOLVING
        target = self.env.lookup(name)
        self.state = DispatchState.RUNNING
        logger.debug("Dispatching '%s'", name)
        target()

    def dispatch(self, targets: Sequence[str] = ()) -> int:
        """Run each requested target in order, or the default target if none."""
        status = ExitCode.OK
        try:
            if targets:
                for name in targets:
                    try:
                        self._run(name)
                    except (MissingBindingError, NameError) as exc:
                        self._missing(name, exc)
                        status = ExitCode.TARGET_MISSING
            else:
                try:
                    self._run(DEFAULT_TARGET)
                except (MissingBindingError, NameError) as exc:
                    self._missing(DEFAULT_TARGET, exc)
                    status = ExitCode.DEFAULT_MISSING
        except Exception as exc:
            logger.debug("Dispatch failed", exc_info=True)
            print(str(exc) or type(exc).__name__)
            status = ExitCode.DISPATCH_FAILED

        self.state = DispatchState.COMPLETED if status is ExitCode.OK else DispatchState.FAILED
        return int(status)

    def list_targets(self) -> int:
        """Print the documented targets and the default target."""
        for line in self.env.registry.listing():
            print(line)
        return int(ExitCode.OK)
