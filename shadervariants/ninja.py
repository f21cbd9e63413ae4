"""
Emitting a ninja build file for one or more build targets.

Each build unit becomes one build edge, with the source (or precompiled
file) as input and the artifact as output. Each target becomes a phony edge
over its artifacts. Ninja then takes care of running independent units in
parallel, and of only rebuilding artifacts whose input changed.
"""

import os
import sys
import shlex
import subprocess

from .templating import render_template, register_template_filter


def ninja_escape_path(path):
    """Escape a path for use in a build line."""
    path = os.fspath(path)
    return path.replace("$", "$$").replace(" ", "$ ").replace(":", "$:")


def ninja_escape_paths(paths):
    return " ".join(ninja_escape_path(p) for p in paths)


def join_command(args):
    """Join an argument list into a command line for the current platform's shell."""
    args = [os.fspath(a) for a in args]
    if sys.platform.startswith("win"):
        return subprocess.list2cmdline(args)
    return shlex.join(args)


def get_unit_command(unit):
    """Get the argument list that performs the given unit from the command line."""
    if unit.kind == "compile":
        return unit.command
    elif unit.kind == "copy":
        return [
            sys.executable,
            "-m",
            "shadervariants",
            "copy",
            unit.input_path,
            unit.output_path,
        ]
    else:
        raise TypeError(f"Cannot emit a ninja edge for unit of kind {unit.kind!r}")


def ninja_command(unit):
    # Only $ is special in ninja variable values
    return join_command(get_unit_command(unit)).replace("$", "$$")


register_template_filter("ninja_path", ninja_escape_path)
register_template_filter("ninja_paths", ninja_escape_paths)
register_template_filter("ninja_command", ninja_command)


def render_ninja(targets):
    """Get the text of a ninja build file for the given BuildTarget objects."""
    from . import __version__

    targets = list(targets)
    names = [t.name for t in targets]
    if len(set(names)) != len(names):
        raise ValueError("Build target names must be unique.")
    return render_template(
        "shadervariants.build.ninja.j2", targets=targets, version=__version__
    )


def write_ninja(targets, filename):
    """Write a ninja build file for the given targets. Returns the filename."""
    text = render_ninja(targets)
    dirname = os.path.dirname(os.fspath(filename))
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    with open(filename, "w", encoding="utf-8", newline="\n") as f:
        f.write(text)
    return filename
