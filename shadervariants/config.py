"""
The configuration of a build.

Values are taken, in increasing order of precedence, from the defaults, a
TOML file, the environment, and explicit keyword arguments (e.g. from the
CLI). In a ``pyproject.toml`` the settings live in ``[tool.shadervariants]``,
in any other TOML file in ``[shadervariants]``::

    [tool.shadervariants]
    output-dir = "build"
    families = ["spirv", "sm5"]
    vulkan-sdk = "/opt/vulkan-sdk"

    [tool.shadervariants.tools]
    glslc = "/opt/shaderc/bin/glslc"

    [tool.shadervariants.fragment-axes]
    sm6 = ["foveation_decode"]

"""

import os
import tomllib

from .errors import ConfigurationError
from .families import DEFAULT_PROFILES, check_fragment_axes
from .toolchains import COMPILERS
from .utils.enums import Family


ENV_VARS = {
    "vulkan_sdk": "VULKAN_SDK",
    "android_ndk": "ANDROID_NDK",
}

_known_keys = {"output_dir", "families", "tools", "vulkan_sdk", "android_ndk", "fragment_axes"}


class BuildConfig:
    """The settings for one invocation of the pipeline.

    Parameters
    ----------
    output_dir : str
        The base directory; artifacts go in ``<output_dir>/shaders/``.
    families : list of str | None
        The enabled families. Default all.
    tools : dict | None
        Explicit paths of compilers, by compiler name (e.g. "glslc").
    vulkan_sdk : str | None
        The Vulkan SDK root, searched for glslc.
    android_ndk : str | None
        The Android NDK root. When set, glslc is only searched for in the NDK.
    fragment_axes : dict | None
        Per family, the features to expand fragment shaders over, replacing
        the builtin default for that family.
    """

    def __init__(
        self,
        output_dir=".",
        families=None,
        tools=None,
        vulkan_sdk=None,
        android_ndk=None,
        fragment_axes=None,
    ):
        self._output_dir = os.fspath(output_dir)

        if families is None:
            families = list(Family)
        if isinstance(families, str):
            families = [families]
        for family in families:
            if family not in Family:
                raise ConfigurationError(f"Unknown shader family: {family!r}")
        self._families = tuple(f for f in Family if f in families)

        tools = dict(tools or {})
        for name in tools:
            if name not in COMPILERS:
                raise ConfigurationError(f"Unknown shader compiler: {name!r}")
        self._tools = tools

        self._vulkan_sdk = vulkan_sdk or None
        self._android_ndk = android_ndk or None

        # Build the profiles once, so every component sees the same data
        fragment_axes = dict(fragment_axes or {})
        self._profiles = {}
        for family, profile in DEFAULT_PROFILES.items():
            if family in fragment_axes:
                axes = check_fragment_axes(fragment_axes.pop(family))
                profile = profile.replace(fragment_axes=axes)
            self._profiles[family] = profile
        if fragment_axes:
            raise ConfigurationError(
                f"Fragment axes given for unknown families: {sorted(fragment_axes)}"
            )

    def __repr__(self):
        return f"<BuildConfig {self._output_dir!r} {list(self._families)} at {hex(id(self))}>"

    @property
    def output_dir(self):
        return self._output_dir

    @property
    def families(self):
        """The enabled families, in canonical order."""
        return self._families

    @property
    def tools(self):
        return dict(self._tools)

    @property
    def vulkan_sdk(self):
        return self._vulkan_sdk

    @property
    def android_ndk(self):
        return self._android_ndk

    @property
    def profiles(self):
        """The FamilyProfile objects of the enabled families."""
        return [self._profiles[f] for f in self._families]

    def get_profile(self, family):
        """Get the FamilyProfile for the given family (enabled or not)."""
        try:
            return self._profiles[family]
        except (KeyError, TypeError):
            raise ConfigurationError(f"Unknown shader family: {family!r}") from None

    def is_enabled(self, family):
        return family in self._families


def read_config_file(filename):
    """Read the shadervariants settings from a TOML file.

    Returns a dict with normalized keys. Paths are resolved relative to the
    directory of the file.
    """
    filename = os.fspath(filename)
    try:
        with open(filename, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as err:
        raise ConfigurationError(f"Invalid TOML in {filename}: {err}") from None
    except OSError as err:
        raise ConfigurationError(f"Cannot read config file {filename}: {err}") from None

    if os.path.basename(filename) == "pyproject.toml":
        section = data.get("tool", {}).get("shadervariants", {})
    else:
        section = data.get("shadervariants", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"The shadervariants section in {filename} must be a table.")

    settings = {}
    for key, value in section.items():
        key = key.replace("-", "_")
        if key not in _known_keys:
            raise ConfigurationError(f"Unknown setting {key!r} in {filename}")
        settings[key] = value

    base_dir = os.path.dirname(os.path.abspath(filename))
    for key in ("output_dir", "vulkan_sdk", "android_ndk"):
        if key in settings:
            if not isinstance(settings[key], str):
                raise ConfigurationError(f"Setting {key!r} in {filename} must be a str.")
            settings[key] = os.path.join(base_dir, settings[key])
    for key in ("tools", "fragment_axes"):
        if key in settings and not isinstance(settings[key], dict):
            raise ConfigurationError(f"Setting {key!r} in {filename} must be a table.")
    tools = settings.get("tools", {})
    for name, path in tools.items():
        # Bare names are looked up on PATH; only resolve actual paths
        if isinstance(path, str) and (os.sep in path or "/" in path):
            tools[name] = os.path.join(base_dir, path)
    return settings


def load_config(filename=None, environ=None, **overrides):
    """Get a BuildConfig from a file, the environment, and explicit overrides.

    Overrides that are None are ignored, so CLI arguments can be passed
    directly.
    """
    if environ is None:
        environ = os.environ
    settings = {}
    if filename:
        settings.update(read_config_file(filename))
    for key, env_name in ENV_VARS.items():
        if environ.get(env_name):
            settings[key] = environ[env_name]
    for key, value in overrides.items():
        if key not in _known_keys:
            raise TypeError(f"load_config() got an unexpected setting {key!r}")
        if value is not None:
            if key == "tools":
                settings["tools"] = {**settings.get("tools", {}), **value}
            else:
                settings[key] = value
    return BuildConfig(**settings)
