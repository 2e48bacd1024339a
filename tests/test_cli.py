"""End-to-end tests for the gantry command line."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from gantry.cli import main

BUILD_FILE = """
@target(clean="Clean up")
def clean():
    print("cleaning")


@target(build="Build everything")
def build():
    clean()
    print("done")


setdefault(build)
"""


def _write_build(tmp_path: Path, content: str = BUILD_FILE, filename: str = "build.gant") -> Path:
    f = tmp_path / filename
    f.write_text(content)
    return f


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GANTLIB", raising=False)
    monkeypatch.setattr(sys, "path", list(sys.path))


class TestDispatch:
    def test_default_target(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main([]) == 0
        assert capsys.readouterr().out == "cleaning\ndone\n"

    def test_named_targets(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main(["clean", "clean"]) == 0
        assert capsys.readouterr().out == "cleaning\ncleaning\n"

    def test_options_between_targets(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main(["clean", "-q", "build"]) == 0
        assert capsys.readouterr().out == "cleaning\ncleaning\ndone\n"

    def test_missing_target(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main(["missing"]) == 11
        assert capsys.readouterr().out == "Target missing does not exist.\n"

    def test_missing_default(self, tmp_path, capsys):
        _write_build(tmp_path, "x = 1\n")
        assert main([]) == 12
        assert "Target default does not exist." in capsys.readouterr().out

    def test_failing_target(self, tmp_path, capsys):
        _write_build(
            tmp_path,
            """
@target(fail="Always fails")
def fail():
    raise RuntimeError("boom")
""",
        )
        assert main(["fail"]) == 13
        assert capsys.readouterr().out == "boom\n"

    def test_alternate_build_file(self, tmp_path, capsys):
        f = _write_build(tmp_path, filename="other.gant")
        assert main(["-f", str(f), "clean"]) == 0
        assert capsys.readouterr().out == "cleaning\n"

    def test_standard_input(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO(BUILD_FILE))
        assert main(["-f", "-"]) == 0
        assert capsys.readouterr().out == "cleaning\ndone\n"


class TestListing:
    @pytest.mark.parametrize("flag", ["-T", "-p"])
    def test_list_targets(self, tmp_path, capsys, flag):
        _write_build(tmp_path)
        assert main([flag]) == 0
        assert capsys.readouterr().out == (
            "\n build  Build everything\n clean  Clean up\n\nDefault target is build.\n\n"
        )

    def test_listing_does_not_run_targets(self, tmp_path, capsys):
        _write_build(tmp_path)
        main(["-T"])
        assert "cleaning" not in capsys.readouterr().out


class TestConfigurationErrors:
    def test_missing_build_file(self, capsys):
        assert main([]) == 1
        assert "Cannot open file build.gant" in capsys.readouterr().out

    def test_unknown_option(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main(["--bogus"]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_cache_with_standard_input(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO(BUILD_FILE))
        assert main(["-c", "-d", str(tmp_path / "cache"), "-f", "-"]) == 1
        assert "Caching can only be used" in capsys.readouterr().out

    def test_cache_with_render(self, tmp_path, capsys):
        _write_build(tmp_path)
        assert main(["-c", "-d", str(tmp_path / "cache"), "--render"]) == 1
        assert "rendering" in capsys.readouterr().out

    def test_bad_define(self, tmp_path):
        _write_build(tmp_path)
        assert main(["-D", "=oops"]) == 1


class TestScriptErrors:
    def test_syntax_error(self, tmp_path, capsys):
        _write_build(tmp_path, "def (:\n")
        assert main([]) == 2
        assert capsys.readouterr().out.startswith("build.gant, line 1 -- Error evaluating gantfile:")

    def test_evaluation_error(self, tmp_path, capsys):
        _write_build(tmp_path, "x = 1\nraise ValueError('bad script')\n")
        assert main([]) == 2
        assert capsys.readouterr().out == (
            "build.gant, line 2 -- Error evaluating gantfile: bad script\n"
        )

    def test_unknown_default_in_script(self, tmp_path, capsys):
        _write_build(tmp_path, "setdefault('nothing')\n")
        assert main([]) == 2
        assert "Target nothing does not exist so cannot be made the default." in capsys.readouterr().out


class TestOptions:
    def test_help(self, capsys):
        assert main(["-h"]) == 0
        assert "usage: gantry" in capsys.readouterr().out

    def test_version(self, capsys):
        assert main(["-V"]) == 0
        assert capsys.readouterr().out.startswith("Gantry version ")

    def test_defines(self, tmp_path, capsys):
        _write_build(
            tmp_path,
            """
@target(show="Show the version")
def show():
    print(version)
    tasks.echo("property ${version}")
""",
        )
        assert main(["-D", "version=1.2", "show"]) == 0
        assert capsys.readouterr().out == "1.2\nproperty 1.2\n"

    def test_dry_run(self, tmp_path):
        _write_build(
            tmp_path,
            """
@target(prepare="Make the output directory")
def prepare():
    tasks.mkdir("out")
""",
        )
        assert main(["-n", "prepare"]) == 0
        assert not (tmp_path / "out").exists()
        assert main(["prepare"]) == 0
        assert (tmp_path / "out").is_dir()

    def test_silent_suppresses_echo(self, tmp_path, capsys):
        _write_build(
            tmp_path,
            """
@target(default="Say something")
def say():
    tasks.echo("hello")
""",
        )
        assert main(["-s"]) == 0
        assert capsys.readouterr().out == ""

    def test_render(self, tmp_path, capsys):
        _write_build(
            tmp_path,
            """
{% for name in ["alpha", "beta"] %}
@target({{ name }}="Target {{ name }}")
def {{ name }}():
    print("{{ name }} in {{ stage }}")
{% endfor %}
""",
        )
        assert main(["--render", "-D", "stage=ci", "alpha", "beta"]) == 0
        assert capsys.readouterr().out == "alpha in ci\nbeta in ci\n"

    def test_gantlib_bundle(self, tmp_path, capsys):
        lib = tmp_path / "lib"
        lib.mkdir()
        (lib / "greet.gant").write_text(
            """
@target(greet="Say hello")
def greet():
    message("greet", "hello")
"""
        )
        _write_build(tmp_path, 'include_targets << "greet"\n')
        assert main(["-l", str(lib), "greet"]) == 0
        assert capsys.readouterr().out == "    [greet] hello\n"

    def test_builtin_clean_bundle(self, tmp_path):
        (tmp_path / "build").mkdir()
        _write_build(
            tmp_path,
            """
include_targets << "clean"
clean_directory.append("build")
setdefault("clean")
""",
        )
        assert main([]) == 0
        assert not (tmp_path / "build").exists()

    def test_classpath_tool(self, tmp_path):
        tools = tmp_path / "tools"
        tools.mkdir()
        (tools / "gantry_cli_tool.py").write_text(
            """
class Stamp:
    def __init__(self, env):
        self.env = env

    def write(self, path):
        open(path, "w").write("stamped")
"""
        )
        _write_build(
            tmp_path,
            """
include_tool << "gantry_cli_tool:Stamp"

@target(default="Stamp")
def stamp():
    Stamp.write("stamp.txt")
""",
        )
        assert main(["-P", str(tools)]) == 0
        assert (tmp_path / "stamp.txt").read_text() == "stamped"


class TestCaching:
    def test_cached_runs_match_uncached(self, tmp_path, capsys):
        _write_build(tmp_path)
        cache = tmp_path / "cache"
        assert main([]) == 0
        uncached = capsys.readouterr().out

        assert main(["-c", "-d", str(cache)]) == 0
        assert capsys.readouterr().out == uncached
        assert (cache / "build_gant.gantc").is_file()

        assert main(["-c", "-d", str(cache)]) == 0
        assert capsys.readouterr().out == uncached

    def test_cache_defines_bindings(self, tmp_path, capsys):
        cache = tmp_path / "cache"
        _write_build(
            tmp_path,
            """
@target(default="Show cache settings")
def show():
    print(cache_enabled, cache_directory.name)
""",
        )
        assert main(["-c", "-d", str(cache)]) == 0
        assert capsys.readouterr().out == "True cache\n"
