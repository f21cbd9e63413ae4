"""
Finding the shader compilers that are available on this host.

Each family has a short list of candidate compilers in order of preference.
The first one that exists wins. Nothing beyond existence is checked: a
binary that is found is trusted to be invocable. When no candidate is found
the family gets the "none" toolchain and its artifacts are copied from the
precompiled tree instead.
"""

import os
import glob
import shutil

from .errors import ConfigurationError, ToolNotFound
from .stages import KEYWORD_FROM_STAGE
from .utils import logger
from .utils.enums import Stage, ToolchainRole


class BaseCompiler:
    """Base class for the supported shader compilers.

    Subclasses define the executable name, the fixed flags, and how a
    command line is put together for one (source, output) pair.
    """

    name = ""
    base_flags = ()

    def __init__(self, path, profile):
        self._path = os.fspath(path)
        self._profile = profile

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._path!r} at {hex(id(self))}>"

    @property
    def path(self):
        """The path of the compiler executable."""
        return self._path

    @property
    def profile(self):
        """The FamilyProfile that this compiler builds for."""
        return self._profile

    @classmethod
    def get_search_dirs(cls, config):
        """Get extra directories to search, before PATH is searched.

        Returns a tuple (dirs, use_path).
        """
        return (), True

    def get_command(self, source_path, output_path, stage, defines, entry_point):
        """Get the argument list to compile one artifact."""
        raise NotImplementedError()


class GlslcCompiler(BaseCompiler):
    """The glslc compiler from shaderc, shipped with the Vulkan SDK and the Android NDK."""

    name = "glslc"

    @property
    def base_flags(self):
        return ("-Werror", "-O", "-mfmt=c", f"--target-env={self._profile.target_version}")

    @classmethod
    def get_search_dirs(cls, config):
        ndk = getattr(config, "android_ndk", None)
        if ndk:
            # The NDK ships its own glslc, and only that one should be used
            return tuple(_glob_dirs(os.path.join(ndk, "shader-tools"))), False
        sdk = getattr(config, "vulkan_sdk", None)
        if sdk:
            return tuple(_glob_dirs(sdk)), True
        return (), True

    def get_command(self, source_path, output_path, stage, defines, entry_point):
        command = [self._path, *self.base_flags]
        command += [f"-D{d}" for d in defines]
        command += [f"-fshader-stage={KEYWORD_FROM_STAGE[stage]}", source_path]
        command += ["-o", output_path]
        return command


class GlslangValidatorCompiler(BaseCompiler):
    """The Khronos reference validator, which can also emit SPIR-V."""

    name = "glslangValidator"

    @property
    def base_flags(self):
        return ("-g0", "-V", "--target-env", self._profile.target_version)

    def get_command(self, source_path, output_path, stage, defines, entry_point):
        command = [self._path, *self.base_flags]
        command += [f"-D{d}" for d in defines]
        command += ["-S", KEYWORD_FROM_STAGE[stage], source_path, "-x"]
        command += ["-o", output_path]
        return command


_hlsl_profile_prefix = {Stage.vertex: "vs", Stage.fragment: "ps"}


class DxcCompiler(BaseCompiler):
    """The DirectX shader compiler, for shader model 6."""

    name = "dxc"
    base_flags = (
        "-nologo",
        "-WX",
        "-Ges",
        "-Zi",
        "-Zpc",
        "-Qstrip_reflect",
        "-Qstrip_debug",
        "-O3",
    )

    def get_command(self, source_path, output_path, stage, defines, entry_point):
        target = f"{_hlsl_profile_prefix[stage]}_{self._profile.target_version}"
        command = [self._path, *self.base_flags]
        for d in defines:
            command += ["-D", d]
        command += ["-T", target, "-E", entry_point, source_path]
        command += ["-Fo", output_path]
        return command


class FxcCompiler(BaseCompiler):
    """The legacy effect compiler, for shader model 5."""

    name = "fxc"
    base_flags = (
        "/nologo",
        "/WX",
        "/Ges",
        "/Zi",
        "/Zpc",
        "/Qstrip_reflect",
        "/Qstrip_debug",
        "/O3",
    )

    def get_command(self, source_path, output_path, stage, defines, entry_point):
        target = f"{_hlsl_profile_prefix[stage]}_{self._profile.target_version}"
        command = [self._path, *self.base_flags]
        command += [f"/D{d}" for d in defines]
        command += [f"/T{target}", f"/E{entry_point}", source_path]
        command += ["/Fo", output_path]
        return command


COMPILERS = {
    cls.name: cls
    for cls in (GlslcCompiler, GlslangValidatorCompiler, DxcCompiler, FxcCompiler)
}


def _glob_dirs(root):
    return sorted(p for p in glob.glob(os.path.join(glob.escape(root), "*")) if os.path.isdir(p))


def find_compiler(name, config=None):
    """Get the path of the compiler with the given name.

    An explicit path in ``config.tools`` takes precedence over searching.
    Raises ToolNotFound if the compiler cannot be found.
    """
    try:
        cls = COMPILERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown shader compiler: {name!r}") from None

    # Explicitly configured
    tools = getattr(config, "tools", None) or {}
    explicit = tools.get(name)
    if explicit:
        path = shutil.which(os.fspath(explicit))
        if path is None:
            raise ToolNotFound(name, [explicit])
        return path

    # Search
    search_dirs, use_path = cls.get_search_dirs(config)
    searched = []
    if search_dirs:
        path = shutil.which(name, path=os.pathsep.join(search_dirs))
        if path:
            return path
        searched.extend(search_dirs)
    if use_path:
        path = shutil.which(name)
        if path:
            return path
        searched.append("PATH")
    raise ToolNotFound(name, searched)


class Toolchain:
    """The compiler selected for one family, or the absence thereof.

    Instances are created by ``select_toolchain()`` and do not change
    afterwards.
    """

    def __init__(self, profile, role, compiler=None):
        if role not in ToolchainRole:
            raise ValueError(f"Invalid toolchain role: {role!r}")
        if (role == ToolchainRole.none) != (compiler is None):
            raise ValueError("A toolchain has a compiler unless its role is 'none'.")
        self._profile = profile
        self._role = role
        self._compiler = compiler

    def __repr__(self):
        name = self._compiler.name if self._compiler else "none"
        return f"<Toolchain {self._profile.family}:{name} ({self._role}) at {hex(id(self))}>"

    @property
    def profile(self):
        """The FamilyProfile of this toolchain."""
        return self._profile

    @property
    def role(self):
        """The ToolchainRole: primary, secondary, or none."""
        return self._role

    @property
    def compiler(self):
        """The BaseCompiler instance, or None in fallback mode."""
        return self._compiler

    @property
    def available(self):
        """Whether a compiler is available (i.e. not in fallback mode)."""
        return self._compiler is not None

    @property
    def name(self):
        """The name of the compiler, or None."""
        return self._compiler.name if self._compiler else None


def select_toolchain(profile, config=None):
    """Select the compiler for the given FamilyProfile.

    The candidates in ``profile.compilers`` are tried in order; the first
    is the primary compiler, any next one a secondary. If none is found, a
    toolchain with role "none" is returned.
    """
    for i, name in enumerate(profile.compilers):
        try:
            path = find_compiler(name, config)
        except ToolNotFound as err:
            logger.debug(str(err))
            continue
        logger.info(f"Found {name}: {path}")
        role = ToolchainRole.primary if i == 0 else ToolchainRole.secondary
        return Toolchain(profile, role, COMPILERS[name](path, profile))

    names = " or ".join(profile.compilers) or "a compiler"
    logger.info(
        f"Could NOT find {names}, using precompiled {profile.extension} files for {profile.family}"
    )
    return Toolchain(profile, ToolchainRole.none)


def select_toolchains(profiles, config=None):
    """Select a toolchain for each of the given profiles, independently.

    Returns a dict that maps family name to Toolchain.
    """
    return {profile.family: select_toolchain(profile, config) for profile in profiles}
