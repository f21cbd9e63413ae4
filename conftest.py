"""Global configuration for pytest"""

import os
import sys
import stat
import textwrap

import pytest


FAKE_COMPILER = '''\
#!{python}
"""Stand-in for a shader compiler: writes its own arguments to the output file."""
import sys

args = sys.argv[1:]
for flag in ("-o", "-Fo", "/Fo"):
    if flag in args:
        out = args[args.index(flag) + 1]
        break
else:
    sys.exit("no output given")
sources = [a for a in args if a.endswith((".glsl", ".hlsl"))]
with open(sources[0]) as f:
    text = f.read()
if "#error" in text:
    sys.stderr.write(sources[0] + ":1: error: bad shader\\n")
    sys.exit(2)
if "#partial" in text:
    # Fail after writing some output
    with open(out, "w") as f:
        f.write("partial")
    sys.exit(1)
with open(out, "w") as f:
    f.write(" ".join(args))
'''


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """
    Called at start of each test, guarantees that no compilers from the host
    are found, and that no SDK settings leak in from the environment.
    """
    empty_dir = tmp_path_factory.mktemp("empty-path")
    monkeypatch.setenv("PATH", str(empty_dir))
    for name in ("VULKAN_SDK", "ANDROID_NDK", "SHADERVARIANTS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_compiler(tmp_path):
    """Factory to create a fake compiler executable.

    Usage: ``make_compiler("glslc")`` or ``make_compiler("dxc", directory)``.
    Returns the path of the created executable.
    """
    if sys.platform.startswith("win"):
        pytest.skip("Fake compilers are shebang scripts")

    def make(name, directory=None):
        directory = directory or tmp_path / "bin"
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, name)
        with open(path, "w") as f:
            f.write(textwrap.dedent(FAKE_COMPILER).format(python=sys.executable))
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return make


@pytest.fixture
def shader_dir(tmp_path):
    """A directory with a few GLSL and HLSL sources."""
    directory = tmp_path / "src"
    directory.mkdir()
    for name in ("overlay_frag.glsl", "overlay_vert.glsl", "quad_vert.hlsl", "video_frag.hlsl"):
        (directory / name).write_text("void main() {}\n")
    (directory / "passthrough.hlsl").write_text("float4 MainVS() {}\nfloat4 MainPS() {}\n")
    return directory
