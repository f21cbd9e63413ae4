"""
Turning artifact specs into units of work, and running them.

A unit either invokes a compiler for one (source, variant) pair, or copies
one precompiled artifact into place. Units declare their inputs and outputs
explicitly and share no state, so an external scheduler can run them in
any order or in parallel. The ``run_units()`` function in this module is a
simple sequential scheduler for when no such build system is used.

Next to each output, a stamp file (``<output>.cmd``) records the command
that produced it. An output whose stamp does not match the current command
is stale.
"""

import os
import subprocess

from .errors import (
    CompilerInvocationFailure,
    MissingPrecompiledArtifact,
    ShaderVariantsError,
)
from .utils import logger, atomic_copy, is_newer


# Suffix of the file next to each artifact that records the command it was built with
STAMP_SUFFIX = ".cmd"


def _remove_file(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class BuildUnit:
    """Base class for a single unit of work that produces one artifact."""

    kind = ""

    def __init__(self, artifact, input_path, output_path):
        self._artifact = artifact
        self._input_path = os.fspath(input_path)
        self._output_path = os.fspath(output_path)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._output_path!r} at {hex(id(self))}>"

    @property
    def artifact(self):
        """The ArtifactSpec that this unit realizes."""
        return self._artifact

    @property
    def inputs(self):
        """The files that this unit depends on."""
        return (self._input_path,)

    @property
    def outputs(self):
        """The files that this unit produces."""
        return (self._output_path,)

    @property
    def input_path(self):
        return self._input_path

    @property
    def output_path(self):
        return self._output_path

    @property
    def stamp_path(self):
        """The file that records how the output was produced."""
        return self._output_path + STAMP_SUFFIX

    def get_stamp(self):
        """Get the text that identifies how this unit produces its output."""
        raise NotImplementedError()

    def is_stale(self):
        """Whether the output is missing, older than the input, or produced differently."""
        if not os.path.isfile(self._output_path):
            return True
        try:
            with open(self.stamp_path, "r", encoding="utf-8") as f:
                stamp = f.read()
        except OSError:
            return True
        if stamp != self.get_stamp():
            return True
        return is_newer(self._input_path, self._output_path)

    def run(self, force=False):
        """Produce the output. Returns True if work was done, False if up to date."""
        if not force and not self.is_stale():
            logger.debug(f"Up to date: {self._output_path}")
            return False
        # An interrupted run must not look up to date
        _remove_file(self.stamp_path)
        self._run()
        with open(self.stamp_path, "w", encoding="utf-8") as f:
            f.write(self.get_stamp())
        return True

    def _run(self):
        raise NotImplementedError()


class CompileUnit(BuildUnit):
    """Compile one artifact with the selected compiler."""

    kind = "compile"

    def __init__(self, artifact, compiler, output_path):
        super().__init__(artifact, artifact.source.path, output_path)
        self._compiler = compiler
        self._command = compiler.get_command(
            artifact.source.path,
            self._output_path,
            artifact.stage,
            artifact.defines,
            artifact.entry_point,
        )

    @property
    def compiler(self):
        return self._compiler

    @property
    def command(self):
        """The argument list of the compiler invocation."""
        return list(self._command)

    def get_stamp(self):
        return "\n".join(["compile", *self._command]) + "\n"

    def _run(self):
        os.makedirs(os.path.dirname(self._output_path) or ".", exist_ok=True)
        logger.info(f"Compiling {self._artifact.source.name} -> {self._output_path}")
        logger.debug(" ".join(self._command))
        try:
            p = subprocess.run(
                self._command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
            )
        except OSError as err:
            _remove_file(self._output_path)
            raise CompilerInvocationFailure(self._command, None, str(err)) from err
        if p.returncode != 0:
            # Whatever the compiler wrote before failing is not a valid artifact
            _remove_file(self._output_path)
            output = p.stdout.decode(errors="replace")
            raise CompilerInvocationFailure(self._command, p.returncode, output)


class CopyUnit(BuildUnit):
    """Copy one precompiled artifact into place, in fallback mode."""

    kind = "copy"

    def is_stale(self):
        # A missing precompiled file must surface as an error, not as "up to date"
        if not os.path.isfile(self._input_path):
            return True
        return super().is_stale()

    def get_stamp(self):
        return "\n".join(["copy", self._input_path]) + "\n"

    def _run(self):
        logger.info(f"Copying {self._input_path} -> {self._output_path}")
        copy_precompiled(self._input_path, self._output_path)


def copy_precompiled(precompiled_path, output_path):
    """Copy a precompiled artifact verbatim to the output path.

    Raises MissingPrecompiledArtifact if the precompiled file does not exist.
    In that case nothing is written at the output path.
    """
    if not os.path.isfile(precompiled_path):
        raise MissingPrecompiledArtifact(precompiled_path, output_path)
    atomic_copy(precompiled_path, output_path)


def plan_units(artifacts, toolchain, output_dir):
    """Get a list of BuildUnit objects for the given artifact specs.

    If the toolchain has a compiler, each artifact becomes a CompileUnit.
    Otherwise each becomes a CopyUnit that takes the precompiled artifact
    from the ``precompiled`` directory next to the source. Output paths are
    the artifact paths, relative to ``output_dir``.
    """
    output_dir = os.fspath(output_dir)
    units = []
    for artifact in artifacts:
        output_path = os.path.join(output_dir, *artifact.path.split("/"))
        if toolchain.available:
            units.append(CompileUnit(artifact, toolchain.compiler, output_path))
        else:
            precompiled_path = os.path.join(
                artifact.source.directory, *artifact.precompiled_path.split("/")
            )
            units.append(CopyUnit(artifact, precompiled_path, output_path))
    return units


def run_units(units, keep_going=False, force=False):
    """Run the given units in order.

    By default the first failure is raised immediately. With ``keep_going``
    all units are attempted, each failure is logged, and the first failure
    is raised at the end. Nothing is retried.

    Returns the list of units that did work (i.e. were not up to date).
    """
    done = []
    first_error = None
    for unit in units:
        try:
            if unit.run(force=force):
                done.append(unit)
        except ShaderVariantsError as err:
            if not keep_going:
                raise
            logger.error(str(err))
            if first_error is None:
                first_error = err
    if first_error is not None:
        raise first_error
    return done
