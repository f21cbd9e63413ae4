"""
The pipeline that ties the components together.

For one family: select the toolchain, expand every source into its variants,
plan a unit per variant, and collect the units into a named BuildTarget.
Planning does not touch the output directory; ``build_target()`` runs the
units.
"""

import os
import glob

from .config import BuildConfig
from .executor import plan_units, run_units
from .registrar import register_target
from .stages import ShaderSource
from .toolchains import select_toolchain
from .utils import logger
from .utils.enums import Family, ToolchainRole
from .variants import expand_sources


def discover_sources(directory, profile, exclude=()):
    """Get the sorted list of source files with the family's suffix in ``directory``.

    Files whose name is in ``exclude`` (e.g. shared include files) are skipped.
    """
    pattern = os.path.join(glob.escape(os.fspath(directory)), "*" + profile.source_suffix)
    exclude = set(exclude)
    return sorted(
        p
        for p in glob.glob(pattern)
        if os.path.isfile(p) and os.path.basename(p) not in exclude
    )


def get_compile_definitions(toolchain):
    """Get the definitions that consumers of this toolchain's artifacts need."""
    if toolchain.profile.family == Family.spirv and toolchain.name == "glslangValidator":
        # Hex words instead of a C initializer list
        return ("USE_GLSLANGVALIDATOR",)
    return ()


def compile_shaders(
    run_target_name, sources, family, config=None, toolchain=None, registry=None
):
    """Plan the build of all variants of the given sources for one family.

    Parameters
    ----------
    run_target_name : str
        The name of the resulting BuildTarget.
    sources : list
        The shader source paths (or ShaderSource objects), in order.
    family : str
        The target family, e.g. "spirv".
    config : BuildConfig | None
        The configuration. Default a BuildConfig with default settings.
    toolchain : Toolchain | None
        The toolchain to use. If None, it is selected now.
    registry : TargetRegistry | None
        If given, the target is registered in it.

    Returns the BuildTarget. If the family is disabled in the config, the
    target is empty, so that consumers can still depend on it.
    """
    if config is None:
        config = BuildConfig()
    profile = config.get_profile(family)

    if not config.is_enabled(family):
        logger.info(f"Shader family {family} is disabled, target '{run_target_name}' is empty")
        return register_target(run_target_name, (), family=family, registry=registry)

    if toolchain is None:
        toolchain = select_toolchain(profile, config)
    elif toolchain.profile.family != family:
        raise ValueError(
            f"Toolchain for {toolchain.profile.family} cannot build {family} shaders."
        )

    sources = [s if isinstance(s, ShaderSource) else ShaderSource(s) for s in sources]
    artifacts = expand_sources(sources, profile)
    units = plan_units(artifacts, toolchain, config.output_dir)
    if toolchain.role == ToolchainRole.none:
        logger.info(f"{run_target_name}: {len(units)} precompiled artifacts to copy")
    else:
        logger.info(f"{run_target_name}: {len(units)} artifacts to compile with {toolchain.name}")

    return register_target(
        run_target_name,
        units,
        compile_definitions=get_compile_definitions(toolchain),
        family=family,
        registry=registry,
    )


def compile_glsl(run_target_name, sources, config=None, **kwargs):
    """Plan the SPIR-V build of GLSL sources."""
    return compile_shaders(run_target_name, sources, Family.spirv, config, **kwargs)


def compile_hlsl_sm6(run_target_name, sources, config=None, **kwargs):
    """Plan the shader model 6 build of HLSL sources."""
    return compile_shaders(run_target_name, sources, Family.sm6, config, **kwargs)


def compile_hlsl_sm5(run_target_name, sources, config=None, **kwargs):
    """Plan the shader model 5 build of HLSL sources."""
    return compile_shaders(run_target_name, sources, Family.sm5, config, **kwargs)


def build_target(target, keep_going=False, force=False):
    """Run the units of the target. Returns the list of units that did work."""
    done = run_units(target.units, keep_going=keep_going, force=force)
    logger.info(
        f"Built target '{target.name}': {len(done)} of {len(target.units)} units were out of date"
    )
    return done
