"""
Expanding a shader source into the full matrix of variants to build.

Every source is built with multiview off and on. Fragment shaders are
additionally expanded over the family's fragment axes. Combined sources
(without a stage suffix) are built once per entry point instead.

The output path of each variant is::

    shaders/[<family subdir>/][multiview/][fovDecode/][yuv3PlaneFmt/]<name><ext>

Features that are off contribute no directory. The nesting order is fixed,
so the path is a pure function of (name, variant, family).
"""

import itertools
import posixpath

from .errors import ConfigurationError
from .families import FEATURE_DIRS
from .stages import ShaderSource, KEYWORD_FROM_STAGE
from .utils.enums import Feature, Stage


SHADERS_DIR = "shaders"


class Variant:
    """A combination of enabled features.

    Variants compare and hash by their features. The features are kept in
    canonical order (the order of the Feature enum).
    """

    __slots__ = ["_features"]

    def __init__(self, *features):
        for f in features:
            if f not in Feature:
                raise ValueError(f"Unknown feature: {f!r}")
        self._features = tuple(f for f in Feature if f in features)

    def __repr__(self):
        return f"Variant({', '.join(repr(f) for f in self._features)})"

    def __eq__(self, other):
        if not isinstance(other, Variant):
            return NotImplemented
        return self._features == other._features

    def __hash__(self):
        return hash(("Variant", self._features))

    def __contains__(self, feature):
        return feature in self._features

    def __iter__(self):
        return iter(self._features)

    def __len__(self):
        return len(self._features)

    @property
    def features(self):
        """The enabled features, as a tuple in canonical order."""
        return self._features

    @property
    def key(self):
        """A short string to identify this variant, e.g. 'multiview+foveation_decode'."""
        return "+".join(self._features) or "base"

    def get_dirs(self):
        """Get the directory parts for this variant, outermost first."""
        return [FEATURE_DIRS[f] for f in self._features]

    def get_defines(self, profile):
        """Get the preprocessor defines for this variant in the given family."""
        return [profile.feature_define(f) for f in self._features]


class ArtifactSpec:
    """One output artifact of a shader source.

    Parameters
    ----------
    source : ShaderSource
        The source that the artifact is built from.
    stage : Stage
        The stage of the artifact. For combined sources this is the stage of
        the entry point, otherwise the stage of the source.
    variant : Variant
        The enabled features.
    entry_point : str | None
        The entry point to compile, or None if the family has no convention.
    path : str
        The posix path of the artifact, relative to the output base directory.
    """

    __slots__ = ["_source", "_stage", "_variant", "_entry_point", "_path", "_defines"]

    def __init__(self, source, stage, variant, entry_point, path, defines):
        self._source = source
        self._stage = stage
        self._variant = variant
        self._entry_point = entry_point
        self._path = path
        self._defines = tuple(defines)

    def __repr__(self):
        return f"<ArtifactSpec {self._path!r} at {hex(id(self))}>"

    @property
    def source(self):
        return self._source

    @property
    def stage(self):
        return self._stage

    @property
    def variant(self):
        return self._variant

    @property
    def entry_point(self):
        return self._entry_point

    @property
    def path(self):
        return self._path

    @property
    def defines(self):
        """The preprocessor defines to compile this artifact with."""
        return self._defines

    @property
    def precompiled_path(self):
        """The posix path of the precompiled artifact, relative to the source directory.

        This mirrors ``path``, with the ``shaders`` root replaced by ``precompiled``.
        """
        return posixpath.join("precompiled", posixpath.relpath(self._path, SHADERS_DIR))


def compute_artifact_path(name, variant, profile):
    """Get the relative output path for the artifact with the given name and variant."""
    parts = [SHADERS_DIR]
    if profile.subdir:
        parts.append(profile.subdir)
    parts.extend(variant.get_dirs())
    parts.append(name + profile.extension)
    return posixpath.join(*parts)


def get_axes(stage, profile):
    """Get the feature axes that a source of the given stage expands over."""
    if stage == Stage.fragment:
        return (Feature.multiview,) + profile.fragment_axes
    return (Feature.multiview,)


def iter_variants(axes):
    """Iterate over all variants for the given axes, the first axis outermost."""
    for states in itertools.product((False, True), repeat=len(axes)):
        yield Variant(*(axis for axis, on in zip(axes, states) if on))


def expand_source(source, profile):
    """Get the list of ArtifactSpec objects for one source in one family.

    The ``source`` can be a ShaderSource or a path. Raises ConfigurationError
    for a combined source in a family that has no entry point convention.
    """
    if not isinstance(source, ShaderSource):
        source = ShaderSource(source)

    if source.stage == Stage.unspecified:
        entry_points = profile.entry_points
        if not entry_points:
            raise ConfigurationError(
                f"Cannot infer the stage of shader {source.name!r} and the "
                f"{profile.family} family has no entry point convention. "
                "Name the file '<name>_vert' or '<name>_frag'."
            )
        # Stage to build, entry point, output name
        jobs = [
            (stage, entry_points[stage], f"{source.name}_{KEYWORD_FROM_STAGE[stage]}")
            for stage in (Stage.vertex, Stage.fragment)
        ]
        axes = (Feature.multiview,)
    else:
        entry_point = None
        if profile.entry_points:
            entry_point = profile.entry_points[source.stage]
        jobs = [(source.stage, entry_point, source.name)]
        axes = get_axes(source.stage, profile)

    artifacts = []
    for variant in iter_variants(axes):
        for stage, entry_point, name in jobs:
            path = compute_artifact_path(name, variant, profile)
            defines = variant.get_defines(profile)
            artifacts.append(
                ArtifactSpec(source, stage, variant, entry_point, path, defines)
            )
    return artifacts


def expand_sources(sources, profile):
    """Expand an ordered list of sources, keeping their order.

    Raises ConfigurationError if two artifacts would end up at the same path,
    e.g. for two sources with the same name in different directories.
    """
    artifacts = []
    seen = {}
    for source in sources:
        for artifact in expand_source(source, profile):
            other = seen.get(artifact.path)
            if other is not None:
                raise ConfigurationError(
                    f"Shaders {other.source.path!r} and {artifact.source.path!r} "
                    f"both produce {artifact.path!r}."
                )
            seen[artifact.path] = artifact
            artifacts.append(artifact)
    return artifacts
