"""
The exceptions raised by shadervariants.

Each error also derives from the builtin exception that best describes it,
so callers can catch e.g. a ``FileNotFoundError`` without knowing about this
package.
"""


class ShaderVariantsError(Exception):
    """Base class for all shadervariants errors."""


class ConfigurationError(ShaderVariantsError, ValueError):
    """The build definition is invalid, e.g. a source whose stage cannot be resolved.

    This is a bug in the build definition and stops the build.
    """


class ToolNotFound(ShaderVariantsError, LookupError):
    """No usable compiler binary was found.

    This is not fatal: the family falls back to copying precompiled artifacts.
    """

    def __init__(self, name, searched=()):
        self.name = name
        self.searched = tuple(searched)
        msg = f"Could not find {name}"
        if self.searched:
            msg += " in " + ", ".join(str(p) for p in self.searched)
        super().__init__(msg)


class MissingPrecompiledArtifact(ShaderVariantsError, FileNotFoundError):
    """A precompiled artifact to copy in fallback mode does not exist."""

    def __init__(self, precompiled_path, output_path):
        self.precompiled_path = precompiled_path
        self.output_path = output_path
        super().__init__(
            f"Missing precompiled artifact {precompiled_path} (needed for {output_path})"
        )

    def __str__(self):
        return self.args[0]


class CompilerInvocationFailure(ShaderVariantsError, RuntimeError):
    """A compiler exited with a non-zero status.

    The compiler's own diagnostics are available verbatim as ``output``.
    """

    def __init__(self, command, returncode, output=""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            msg = f"Compiler could not be started: {' '.join(self.command)}"
        else:
            msg = f"Compiler failed with exit code {returncode}: {' '.join(self.command)}"
        if output:
            msg += "\n" + output.rstrip()
        super().__init__(msg)
