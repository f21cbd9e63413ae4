"""Build-time compilation of shader feature variants."""

# ruff: noqa: F401

__version__ = "0.1.0"
version_info = tuple(map(int, __version__.split(".")))

from . import utils
from .utils import logger
from .utils.enums import Family, Feature, Stage, ToolchainRole

from .errors import (
    ShaderVariantsError,
    ConfigurationError,
    ToolNotFound,
    MissingPrecompiledArtifact,
    CompilerInvocationFailure,
)
from .stages import infer_stage, ShaderSource
from .families import FamilyProfile, get_profile
from .toolchains import Toolchain, select_toolchain, select_toolchains
from .variants import Variant, ArtifactSpec, compute_artifact_path, expand_source, expand_sources
from .executor import BuildUnit, CompileUnit, CopyUnit, plan_units, run_units, copy_precompiled
from .registrar import BuildTarget, TargetRegistry, register_target, install_target
from .config import BuildConfig, load_config
from .pipeline import (
    discover_sources,
    compile_shaders,
    compile_glsl,
    compile_hlsl_sm5,
    compile_hlsl_sm6,
    build_target,
)
from .ninja import render_ninja, write_ninja
