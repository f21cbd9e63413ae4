import sys

from shadervariants import (
    BuildTarget,
    ToolchainRole,
    expand_source,
    plan_units,
    render_ninja,
    write_ninja,
)
from shadervariants.families import SM6, SPIRV
from shadervariants.ninja import join_command, ninja_escape_path
from shadervariants.toolchains import DxcCompiler, Toolchain
from pytest import raises


def test_ninja_escape_path():
    assert ninja_escape_path("shaders/a.spv") == "shaders/a.spv"
    assert ninja_escape_path("my shaders/a.spv") == "my$ shaders/a.spv"
    assert ninja_escape_path("C:/build/a.cso") == "C$:/build/a.cso"
    assert ninja_escape_path("$HOME/a.spv") == "$$HOME/a.spv"


def test_render_ninja_compile():
    toolchain = Toolchain(SM6, ToolchainRole.primary, DxcCompiler("/opt/dxc", SM6))
    units = plan_units(expand_source("src/quad_vert.hlsl", SM6), toolchain, "build")
    target = BuildTarget("run_hlsl_sm6_compiles", units, family="sm6")

    text = render_ninja([target])
    assert "rule shader_compile" in text
    assert "build build/shaders/quad_vert.cso: shader_compile src/quad_vert.hlsl" in text
    assert "build build/shaders/multiview/quad_vert.cso: shader_compile src/quad_vert.hlsl" in text
    assert "  cmd = " + join_command(units[1].command) in text
    assert (
        "build run_hlsl_sm6_compiles: phony build/shaders/quad_vert.cso "
        "build/shaders/multiview/quad_vert.cso"
    ) in text
    assert "default run_hlsl_sm6_compiles" in text


def test_render_ninja_copy():
    toolchain = Toolchain(SPIRV, ToolchainRole.none)
    units = plan_units(expand_source("src/overlay_frag.glsl", SPIRV), toolchain, "build")
    t1 = BuildTarget("glsl", units)
    t2 = BuildTarget("empty")

    text = render_ninja([t1, t2])
    assert (
        "build build/shaders/fovDecode/overlay_frag.spv: shader_copy "
        "src/precompiled/fovDecode/overlay_frag.spv"
    ) in text
    # Copies go through the CLI, with the current interpreter
    assert "-m shadervariants copy" in text
    assert sys.executable.replace("$", "$$") in text
    assert text.count(": shader_copy ") == 4
    assert "build empty: phony" in text
    assert "default glsl empty" in text

    with raises(ValueError):
        render_ninja([t1, BuildTarget("glsl")])

    # No targets is still a valid file
    assert "default" not in render_ninja([])


def test_write_ninja(tmp_path):
    toolchain = Toolchain(SPIRV, ToolchainRole.none)
    units = plan_units(expand_source("overlay_vert.glsl", SPIRV), toolchain, "build")
    filename = tmp_path / "sub" / "build.ninja"
    assert write_ninja([BuildTarget("glsl", units)], filename) == filename
    assert "build glsl: phony" in filename.read_text()
