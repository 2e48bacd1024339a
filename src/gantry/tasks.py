"""Task facade — the file and command primitives available to target bodies."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any

from .context import Context
from .errors import TargetExecutionError
from .resolve import Resolver

logger = logging.getLogger(__name__)


class TaskRunner:
    """Executes tasks on behalf of target bodies, honouring dry-run mode."""

    def __init__(self, context: Context | None = None) -> None:
        self.context = context if context is not None else Context()
        self.properties: dict[str, Any] = {}

    @property
    def dry_run(self) -> bool:
        return self.context.dry_run

    def property(self, name: str, value: Any = "") -> None:
        """Set a property for ${name} expansion in task arguments."""
        logger.debug("Setting property '%s'", name)
        self.properties[name] = value

    def expand(self, value: Any) -> Any:
        """Expand ${...} references against properties and the process environment."""
        resolver = Resolver({"env": dict(os.environ), **self.properties})
        return resolver.expand(value) if isinstance(value, str) else value

    def echo(self, message: str) -> None:
        """Print a message unless running silently."""
        if not self.context.silent:
            print(self.expand(message))

    def mkdir(self, dir: str | Path) -> None:
        path = Path(self.expand(str(dir)))
        if path.is_dir():
            logger.debug("Skipping mkdir %s; already exists", path)
        elif self.dry_run:
            logger.info("[DRY RUN] Would create directory %s", path)
        else:
            logger.info("Creating directory %s", path)
            path.mkdir(parents=True, exist_ok=True)

    def copy(
        self,
        file: str | Path,
        *,
        tofile: str | Path | None = None,
        todir: str | Path | None = None,
    ) -> None:
        """Copy a file to ``tofile`` or into ``todir``."""
        src = Path(self.expand(str(file)))
        if tofile is not None:
            dest = Path(self.expand(str(tofile)))
        elif todir is not None:
            dest = Path(self.expand(str(todir))) / src.name
        else:
            raise TargetExecutionError("copy requires either tofile or todir")

        if self.dry_run:
            logger.info("[DRY RUN] Would copy %s to %s", src, dest)
            return
        if not src.is_file():
            raise TargetExecutionError(f"Cannot copy {src}: file not found")
        logger.info("Copying %s to %s", src, dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)

    def delete(
        self,
        *,
        file: str | Path | None = None,
        dir: str | Path | None = None,
        includes: str | None = None,
        basedir: str | Path = ".",
        quiet: bool = False,
    ) -> None:
        """Delete a file, a directory tree, or paths matching glob patterns.

        ``includes`` is a comma-separated list of glob patterns relative to
        ``basedir`` (``"**/*~,**/*.bak"``).
        """
        targets: list[Path] = []
        if file is not None:
            targets.append(Path(self.expand(str(file))))
        if dir is not None:
            targets.append(Path(self.expand(str(dir))))
        if includes is not None:
            base = Path(self.expand(str(basedir)))
            for pattern in self.expand(includes).split(","):
                if pattern := pattern.strip():
                    targets.extend(sorted(base.glob(pattern)))

        for path in targets:
            if not path.exists() and not path.is_symlink():
                if not quiet:
                    logger.warning("Cannot delete %s; not present", path)
                continue
            if self.dry_run:
                logger.info("[DRY RUN] Would delete %s", path)
            elif path.is_dir() and not path.is_symlink():
                logger.info("Deleting directory %s", path)
                shutil.rmtree(path)
            else:
                logger.info("Deleting %s", path)
                path.unlink()

    def sh(
        self,
        *command: str,
        dir: str | Path | None = None,
        failonerror: bool = True,
    ) -> int:
        """Run a command; a single string argument is run through the shell."""
        args = [str(self.expand(str(arg))) for arg in command]
        if not args:
            raise TargetExecutionError("sh requires a command")
        cwd = Path(self.expand(str(dir))) if dir is not None else None
        display = " ".join(args)

        if self.dry_run:
            logger.info("[DRY RUN] Would run %s", display)
            return 0

        logger.info("Running %s", display)
        if len(args) == 1:
            result = subprocess.run(args[0], shell=True, cwd=cwd)
        else:
            result = subprocess.run(args, cwd=cwd)
        if result.returncode != 0 and failonerror:
            raise TargetExecutionError(
                f"Command failed with exit code {result.returncode}: {display}"
            )
        return result.returncode
