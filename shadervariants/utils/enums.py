"""
The enums used in shadervariants. The enums are all available from the root
``shadervariants`` namespace.

.. currentmodule:: shadervariants.utils.enums

.. autosummary::
    :toctree: utils/enums

    Family
    Feature
    Stage
    ToolchainRole

"""

from wgpu.utils import BaseEnum


__all__ = [
    "Family",
    "Feature",
    "Stage",
    "ToolchainRole",
]


class Enum(BaseEnum):
    """Enum base class for shadervariants."""


class Stage(Enum):
    """The pipeline stage of a shader source, as derived from its file name."""

    vertex = None  #: A vertex shader (file name ends with ``_vert``).
    fragment = None  #: A fragment/pixel shader (file name ends with ``_frag``).
    unspecified = None  #: A combined source that provides both stages via entry points.


class Feature(Enum):
    """The feature toggles that shader variants are compiled for.

    The order of the fields is the order in which they nest in the output
    directory structure.
    """

    multiview = None  #: Render both eyes in a single pass.
    foveation_decode = None  #: Decode a foveated-rendered video frame.
    yuv_three_plane = None  #: Sample YUV video frames from three separate planes.


class Family(Enum):
    """The binary shader format ecosystems that can be targeted."""

    spirv = None  #: SPIR-V for Vulkan.
    sm6 = None  #: HLSL shader model 6 (DXIL), for D3D12.
    sm5 = None  #: HLSL shader model 5 (DXBC), for D3D11.


class ToolchainRole(Enum):
    """The role of the compiler that was selected for a family."""

    primary = None  #: The preferred compiler of the family.
    secondary = None  #: A fallback compiler (e.g. a validator that can also emit binaries).
    none = None  #: No compiler is available; precompiled artifacts are copied instead.


# NOTE: Don't forget to add new enums to the toctree and __all__
