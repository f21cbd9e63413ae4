"""
Deriving the pipeline stage of a shader from its file name.

Shader sources follow the naming convention ``<name>_<stage>.<ext>``, e.g.
``overlay_frag.glsl`` or ``videoStream_vert.hlsl``. Sources without a stage
suffix are combined sources that provide all stages through entry points.
"""

import os
import re

from .errors import ConfigurationError
from .utils.enums import Stage


STAGE_KEYWORDS = {
    "vert": Stage.vertex,
    "frag": Stage.fragment,
}

# The compiler-facing keyword for each stage (e.g. glslc's -fshader-stage).
KEYWORD_FROM_STAGE = {stage: keyword for keyword, stage in STAGE_KEYWORDS.items()}

_prefix_re = re.compile(r"[A-Za-z0-9]*_")


def infer_stage(name):
    """Get the Stage for the given base name (without extension).

    Every leading ``<token>_`` part is stripped, and the remainder is matched
    against the known stage keywords. Anything else is ``Stage.unspecified``.
    """
    if not isinstance(name, str):
        raise TypeError(f"Shader name must be str, not {name!r}")
    keyword = _prefix_re.sub("", name)
    return STAGE_KEYWORDS.get(keyword, Stage.unspecified)


class ShaderSource:
    """A shader source file together with its inferred stage.

    The stage is derived once, when the object is created.
    """

    __slots__ = ["_path", "_name", "_stage"]

    def __init__(self, path):
        path = os.fspath(path)
        name = os.path.splitext(os.path.basename(path))[0]
        if not name:
            raise ConfigurationError(f"Cannot derive a shader name from {path!r}")
        self._path = path
        self._name = name
        self._stage = infer_stage(name)

    def __repr__(self):
        return f"<ShaderSource {self._name!r} ({self._stage}) at {hex(id(self))}>"

    def __eq__(self, other):
        if not isinstance(other, ShaderSource):
            return NotImplemented
        return self._path == other._path

    def __hash__(self):
        return hash(self._path)

    @property
    def path(self):
        """The path of the source file."""
        return self._path

    @property
    def name(self):
        """The base name of the source, without directory or extension."""
        return self._name

    @property
    def stage(self):
        """The inferred ``Stage``."""
        return self._stage

    @property
    def directory(self):
        """The directory containing the source."""
        return os.path.dirname(self._path)
