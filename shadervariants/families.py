"""
Per-family configuration data.

The families differ in which feature axes they expand: SPIR-V
has no three-plane YUV sampler variant, and the HLSL families do.
"""

from .errors import ConfigurationError
from .utils.enums import Family, Feature, Stage


# Subfolder of each feature in the output and precompiled layouts.
FEATURE_DIRS = {
    Feature.multiview: "multiview",
    Feature.foveation_decode: "fovDecode",
    Feature.yuv_three_plane: "yuv3PlaneFmt",
}

# Preprocessor defines of the non-multiview features. The multiview
# define differs per family, see FamilyProfile.multiview_define.
FEATURE_DEFINES = {
    Feature.foveation_decode: "ENABLE_FOVEATION_DECODE",
    Feature.yuv_three_plane: "ENABLE_3PLANE_FMT_SAMPLER",
}

# The entry point convention for combined HLSL sources.
HLSL_ENTRY_POINTS = {
    Stage.vertex: "MainVS",
    Stage.fragment: "MainPS",
}


class FamilyProfile:
    """Describes how shaders are built for one target family.

    Parameters
    ----------
    family : Family
        The family that this profile describes.
    extension : str
        The file extension of the binary artifacts, including the dot.
    subdir : str
        Directory below ``shaders/`` in which this family's artifacts go.
        Empty for the top level.
    multiview_define : str
        The define that enables multiview for this family.
    fragment_axes : tuple
        The features, besides multiview, that fragment shaders are expanded over.
    entry_points : dict | None
        Map of Stage to entry point name, for families that can compile
        combined sources. None if the family has no such convention.
    target_version : str
        The target environment (SPIR-V) or shader model (HLSL).
    source_suffix : str
        The suffix of source files for this family, used for discovery.
    compilers : tuple
        The names of the candidate compilers, in order of preference.
    """

    def __init__(
        self,
        family,
        *,
        extension,
        subdir,
        multiview_define,
        fragment_axes,
        entry_points,
        target_version,
        source_suffix,
        compilers,
    ):
        if family not in Family:
            raise ConfigurationError(f"Unknown shader family: {family!r}")
        self._family = family
        self._extension = extension
        self._subdir = subdir
        self._multiview_define = multiview_define
        self._fragment_axes = check_fragment_axes(fragment_axes)
        self._entry_points = None if entry_points is None else dict(entry_points)
        self._target_version = target_version
        self._source_suffix = source_suffix
        self._compilers = tuple(compilers)

    def __repr__(self):
        return f"<FamilyProfile {self._family!r} at {hex(id(self))}>"

    @property
    def family(self):
        return self._family

    @property
    def extension(self):
        return self._extension

    @property
    def subdir(self):
        return self._subdir

    @property
    def multiview_define(self):
        return self._multiview_define

    @property
    def fragment_axes(self):
        return self._fragment_axes

    @property
    def entry_points(self):
        # Return a copy, so the profile stays immutable
        return None if self._entry_points is None else dict(self._entry_points)

    @property
    def target_version(self):
        return self._target_version

    @property
    def source_suffix(self):
        return self._source_suffix

    @property
    def compilers(self):
        return self._compilers

    def replace(self, **kwargs):
        """Get a copy of this profile with some fields replaced."""
        fields = dict(
            extension=self._extension,
            subdir=self._subdir,
            multiview_define=self._multiview_define,
            fragment_axes=self._fragment_axes,
            entry_points=self._entry_points,
            target_version=self._target_version,
            source_suffix=self._source_suffix,
            compilers=self._compilers,
        )
        for key in kwargs:
            if key not in fields:
                raise TypeError(f"FamilyProfile has no field {key!r}")
        fields.update(kwargs)
        return FamilyProfile(self._family, **fields)

    def feature_define(self, feature):
        """Get the preprocessor define that enables the given feature."""
        if feature == Feature.multiview:
            return self._multiview_define
        return FEATURE_DEFINES[feature]


def check_fragment_axes(axes):
    """Validate and normalize a sequence of fragment axes.

    The result is a tuple in canonical feature order, because that order
    determines the nesting of the output directories.
    """
    if isinstance(axes, str):
        raise TypeError("fragment_axes must be a sequence of features, not a str.")
    axes = list(axes)
    for axis in axes:
        if axis not in Feature:
            raise ConfigurationError(f"Unknown feature axis: {axis!r}")
        if axis == Feature.multiview:
            raise ConfigurationError(
                "Multiview is the base axis of every family and cannot be a fragment axis."
            )
    if len(set(axes)) != len(axes):
        raise ConfigurationError(f"Duplicate feature axes: {axes!r}")
    return tuple(f for f in Feature if f in axes)


SPIRV = FamilyProfile(
    Family.spirv,
    extension=".spv",
    subdir="",
    multiview_define="ENABLE_MULTIVEW_EXT",
    fragment_axes=(Feature.foveation_decode,),
    entry_points=None,
    target_version="vulkan1.1",
    source_suffix=".glsl",
    compilers=("glslc", "glslangValidator"),
)

SM6 = FamilyProfile(
    Family.sm6,
    extension=".cso",
    subdir="",
    multiview_define="ENABLE_SM6_MULTI_VIEW",
    fragment_axes=(Feature.foveation_decode, Feature.yuv_three_plane),
    entry_points=HLSL_ENTRY_POINTS,
    target_version="6_1",
    source_suffix=".hlsl",
    compilers=("dxc",),
)

SM5 = FamilyProfile(
    Family.sm5,
    extension=".cso",
    subdir="SM5",
    multiview_define="ENABLE_SM5_MULTI_VIEW",
    fragment_axes=(Feature.foveation_decode, Feature.yuv_three_plane),
    entry_points=HLSL_ENTRY_POINTS,
    target_version="5_0",
    source_suffix=".hlsl",
    compilers=("fxc",),
)

DEFAULT_PROFILES = {
    Family.spirv: SPIRV,
    Family.sm6: SM6,
    Family.sm5: SM5,
}


def get_profile(family):
    """Get the builtin FamilyProfile for the given family name."""
    try:
        return DEFAULT_PROFILES[family]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown shader family: {family!r}") from None
