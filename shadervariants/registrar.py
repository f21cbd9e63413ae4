"""
Collecting artifacts into named build targets.

A BuildTarget is the single unit that consumers (e.g. the engine that embeds
the compiled shaders) depend on: building it means building every variant
of every source.
"""

import os

from .errors import ConfigurationError
from .executor import BuildUnit
from .utils import logger, atomic_copy


class BuildTarget:
    """A named aggregate of build units and the artifacts they produce.

    The target is immutable once created.

    Parameters
    ----------
    name : str
        The name that consumers use to depend on this target.
    units : list of BuildUnit
        The units that produce the artifacts, in build order.
    compile_definitions : tuple of str
        Definitions the consumer should compile with to match the artifacts.
    family : str | None
        The family that the target was built for, if any.
    """

    def __init__(self, name, units=(), compile_definitions=(), family=None):
        if not (isinstance(name, str) and name):
            raise TypeError(f"Build target name must be a non-empty str, not {name!r}")
        units = tuple(units)
        for unit in units:
            if not isinstance(unit, BuildUnit):
                raise TypeError(f"Expected BuildUnit instance, got {type(unit)}.")

        # Each output belongs to exactly one unit
        artifacts = []
        owners = {}
        for unit in units:
            for output in unit.outputs:
                key = os.path.normcase(os.path.abspath(output))
                if key in owners:
                    raise ConfigurationError(
                        f"Artifact {output!r} is produced more than once in target {name!r}."
                    )
                owners[key] = unit
                artifacts.append(output)

        self._name = name
        self._units = units
        self._artifacts = tuple(artifacts)
        self._compile_definitions = tuple(compile_definitions)
        self._family = family

    def __repr__(self):
        return f"<BuildTarget {self._name!r} with {len(self._artifacts)} artifacts at {hex(id(self))}>"

    def __len__(self):
        return len(self._artifacts)

    @property
    def name(self):
        """The name of the target."""
        return self._name

    @property
    def units(self):
        """The tuple of BuildUnit objects."""
        return self._units

    @property
    def artifacts(self):
        """The tuple of all artifact paths produced by this target."""
        return self._artifacts

    @property
    def compile_definitions(self):
        """Definitions that a consumer of the artifacts should compile with."""
        return self._compile_definitions

    @property
    def family(self):
        return self._family


class TargetRegistry:
    """Storage for the build targets of one invocation.

    Target names are unique, and an artifact can belong to only one target.
    """

    def __init__(self):
        self._store = {}
        self._artifact_owners = {}

    def __len__(self):
        return len(self._store)

    def __iter__(self):
        return iter(self._store.values())

    def __contains__(self, name):
        return name in self._store

    def register(self, target):
        """Register a BuildTarget. Returns the target."""
        if not isinstance(target, BuildTarget):
            raise TypeError(f"Expected BuildTarget instance, got {type(target)}.")
        if target.name in self._store:
            raise ValueError(f"A build target named '{target.name}' is already registered.")
        new_owners = {}
        for path in target.artifacts:
            key = os.path.normcase(os.path.abspath(path))
            other = self._artifact_owners.get(key)
            if other is not None:
                raise ConfigurationError(
                    f"Artifact {path!r} is produced by both '{other}' and '{target.name}'."
                )
            new_owners[key] = target.name
        self._artifact_owners.update(new_owners)
        self._store[target.name] = target
        return target

    def get(self, name):
        """Get the target with the given name. Raises KeyError if there is none."""
        try:
            return self._store[name]
        except KeyError:
            raise KeyError(f"No build target named '{name}'.") from None

    @property
    def artifacts(self):
        """All artifact paths of all targets, in registration order."""
        return tuple(path for target in self._store.values() for path in target.artifacts)


def register_target(name, units, compile_definitions=(), family=None, registry=None):
    """Create a BuildTarget from the given units, and register it if a registry is given."""
    target = BuildTarget(name, units, compile_definitions, family)
    if registry is not None:
        registry.register(target)
    logger.info(f"Registered build target '{name}' with {len(target)} artifacts")
    return target


def install_target(target, output_dir, destination):
    """Copy the artifacts of a built target to ``destination``.

    Paths relative to ``output_dir`` are kept, so the result has the same
    ``shaders/...`` layout as the build output. Returns the list of
    installed paths.
    """
    output_dir = os.path.abspath(output_dir)
    installed = []
    for path in target.artifacts:
        relpath = os.path.relpath(os.path.abspath(path), output_dir)
        if relpath.startswith(os.pardir):
            raise ValueError(f"Artifact {path!r} is not inside {output_dir!r}.")
        dst = os.path.join(destination, relpath)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Artifact {path!r} has not been built.")
        atomic_copy(path, dst)
        installed.append(dst)
    return installed
