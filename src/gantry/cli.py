"""Command-line front end."""

from __future__ import annotations

import argparse
import logging
from importlib.metadata import PackageNotFoundError, version
from typing import NoReturn

from .config import Options
from .context import Verbosity
from .errors import CompilationError, ConfigurationError, ExitCode
from .runner import Runner

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Verbosity.SILENT: logging.CRITICAL,
    Verbosity.QUIET: logging.WARNING,
    Verbosity.NORMAL: logging.INFO,
    Verbosity.VERBOSE: logging.DEBUG,
}


class _ArgumentParser(argparse.ArgumentParser):
    """Report bad options as configuration errors instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="gantry",
        usage="gantry [option]* [target]*",
        description="Run targets from a Python build file.",
        add_help=False,
    )
    p.add_argument("-c", "--usecache", action="store_true",
                   help="Cache the compiled build file and recompile only when it changes.")
    p.add_argument("-d", "--cachedir", metavar="DIR",
                   help="The directory to cache compiled build files in.")
    p.add_argument("-f", "--gantfile", metavar="FILE",
                   help="Use the named build file instead of build.gant ('-' for standard input).")
    p.add_argument("-h", "--help", action="store_true", help="Print out this message.")
    p.add_argument("-l", "--gantlib", action="append", default=[], metavar="DIRS",
                   help="Directories containing target bundles for include_targets.")
    p.add_argument("-n", "--dry-run", action="store_true", help="Do not actually action any tasks.")
    p.add_argument("-p", "--projecthelp", action="store_true",
                   help="Print out a list of the possible targets.")
    p.add_argument("-q", "--quiet", action="store_true", help="Do not print out much when executing.")
    p.add_argument("-s", "--silent", action="store_true", help="Print out nothing when executing.")
    p.add_argument("-v", "--verbose", action="store_true", help="Print lots of extra information.")
    p.add_argument("-D", dest="defines", action="append", default=[], metavar="NAME=VALUE",
                   help="Define NAME as a build file variable and a task property.")
    p.add_argument("-P", "--classpath", action="append", default=[], metavar="PATHS",
                   help="Add paths to search for tool modules.")
    p.add_argument("-T", "--targets", dest="targets_list", action="store_true",
                   help="Print out a list of the possible targets.")
    p.add_argument("-V", "--version", action="store_true", help="Print the version number and exit.")
    p.add_argument("--render", action="store_true",
                   help="Render the build file as a Jinja2 template with the definitions first.")
    p.add_argument("targets", nargs="*", metavar="target", help="Targets to run.")
    return p


def _version() -> str:
    try:
        return version("gantry")
    except PackageNotFoundError:
        return "<unknown>"


def configure_logging(verbosity: Verbosity) -> None:
    logging.basicConfig(level=_LOG_LEVELS[verbosity], format="%(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_intermixed_args(argv)
    except ConfigurationError as exc:
        print(f"Error in processing command line options: {exc}")
        parser.print_usage()
        return int(ExitCode.CONFIGURATION_ERROR)

    if args.help:
        parser.print_help()
        return int(ExitCode.OK)
    if args.version:
        print(f"Gantry version {_version()}")
        return int(ExitCode.OK)

    try:
        options = Options.from_args(args)
        configure_logging(options.verbosity)
        return Runner(options).process()
    except ConfigurationError as exc:
        print(exc)
        return int(ExitCode.CONFIGURATION_ERROR)
    except CompilationError as exc:
        print(exc)
        return int(ExitCode.EVALUATION_ERROR)


if __name__ == "__main__":
    raise SystemExit(main())
