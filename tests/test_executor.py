import os
import time

from shadervariants import (
    CompilerInvocationFailure,
    CompileUnit,
    CopyUnit,
    MissingPrecompiledArtifact,
    ToolchainRole,
    copy_precompiled,
    expand_source,
    plan_units,
    run_units,
)
from shadervariants.families import SM5, SPIRV
from shadervariants.toolchains import FxcCompiler, GlslcCompiler, Toolchain
from pytest import raises


def make_precompiled(src_dir, relpaths):
    for relpath in relpaths:
        path = os.path.join(src_dir, "precompiled", *relpath.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(b"\x03\x02\x23\x07" + relpath.encode())


def test_plan_compile_units(shader_dir, tmp_path):
    toolchain = Toolchain(SPIRV, ToolchainRole.primary, GlslcCompiler("glslc", SPIRV))
    artifacts = expand_source(shader_dir / "overlay_frag.glsl", SPIRV)
    units = plan_units(artifacts, toolchain, tmp_path / "out")

    assert len(units) == 4
    assert all(isinstance(u, CompileUnit) for u in units)
    assert all(u.kind == "compile" for u in units)

    # The executor uses the expander's paths, it never invents its own
    expected = [str(tmp_path / "out" / a.path) for a in artifacts]
    assert [u.output_path for u in units] == expected
    assert units[0].inputs == (str(shader_dir / "overlay_frag.glsl"),)
    assert units[3].outputs == (expected[3],)

    cmd = units[3].command
    assert cmd[0] == "glslc"
    assert "-DENABLE_MULTIVEW_EXT" in cmd
    assert "-DENABLE_FOVEATION_DECODE" in cmd
    assert cmd[-2:] == ["-o", expected[3]]


def test_plan_copy_units(shader_dir, tmp_path):
    toolchain = Toolchain(SM5, ToolchainRole.none)
    artifacts = expand_source(shader_dir / "quad_vert.hlsl", SM5)
    units = plan_units(artifacts, toolchain, tmp_path / "out")

    assert all(isinstance(u, CopyUnit) for u in units)
    assert [u.input_path for u in units] == [
        str(shader_dir / "precompiled" / "SM5" / "quad_vert.cso"),
        str(shader_dir / "precompiled" / "SM5" / "multiview" / "quad_vert.cso"),
    ]
    assert [u.output_path for u in units] == [
        str(tmp_path / "out" / "shaders" / "SM5" / "quad_vert.cso"),
        str(tmp_path / "out" / "shaders" / "SM5" / "multiview" / "quad_vert.cso"),
    ]


def test_compile_unit_runs_compiler(make_compiler, shader_dir, tmp_path):
    path = make_compiler("fxc")
    toolchain = Toolchain(SM5, ToolchainRole.primary, FxcCompiler(path, SM5))
    artifacts = expand_source(shader_dir / "video_frag.hlsl", SM5)
    units = plan_units(artifacts, toolchain, tmp_path / "out")

    done = run_units(units)
    assert done == units
    for unit in units:
        with open(unit.output_path) as f:
            args = f.read().split()
        assert args == unit.command[1:]

    # Up to date now
    assert run_units(units) == []
    assert run_units(units, force=True) == units

    # Touching the source makes all of its units stale
    future = time.time() + 10
    os.utime(shader_dir / "video_frag.hlsl", (future, future))
    assert all(u.is_stale() for u in units)
    assert run_units(units) == units


def test_compile_failure(make_compiler, shader_dir, tmp_path):
    path = make_compiler("glslc")
    source = shader_dir / "broken_frag.glsl"
    source.write_text("#error nope\n")
    toolchain = Toolchain(SPIRV, ToolchainRole.primary, GlslcCompiler(path, SPIRV))
    units = plan_units(expand_source(source, SPIRV), toolchain, tmp_path / "out")

    with raises(CompilerInvocationFailure) as err:
        units[0].run()
    assert err.value.returncode == 2
    assert "error: bad shader" in err.value.output
    assert "error: bad shader" in str(err.value)
    assert err.value.command == units[0].command


def test_compiler_cannot_start(shader_dir, tmp_path):
    compiler = GlslcCompiler(str(tmp_path / "gone" / "glslc"), SPIRV)
    toolchain = Toolchain(SPIRV, ToolchainRole.primary, compiler)
    units = plan_units(expand_source(shader_dir / "overlay_vert.glsl", SPIRV), toolchain, tmp_path)
    with raises(CompilerInvocationFailure) as err:
        units[0].run()
    assert err.value.returncode is None


def test_failed_compile_leaves_no_output(make_compiler, shader_dir, tmp_path):
    path = make_compiler("glslc")
    source = shader_dir / "half_vert.glsl"
    source.write_text("#partial\n")
    toolchain = Toolchain(SPIRV, ToolchainRole.primary, GlslcCompiler(path, SPIRV))
    units = plan_units(expand_source(source, SPIRV), toolchain, tmp_path / "out")

    with raises(CompilerInvocationFailure):
        run_units(units)
    assert not os.path.exists(units[0].output_path)
    assert not os.path.exists(units[0].stamp_path)

    # Nothing was fixed, so the next run fails again
    assert units[0].is_stale()
    with raises(CompilerInvocationFailure):
        units[0].run()

    # Fixed: the unit builds
    source.write_text("void main() {}\n")
    assert units[0].run()
    assert not units[0].is_stale()


def test_stamp(make_compiler, shader_dir, tmp_path):
    path = make_compiler("glslc")
    source = shader_dir / "overlay_vert.glsl"
    toolchain = Toolchain(SPIRV, ToolchainRole.primary, GlslcCompiler(path, SPIRV))
    units = plan_units(expand_source(source, SPIRV), toolchain, tmp_path / "out")
    assert run_units(units) == units

    unit = units[1]
    assert unit.stamp_path == unit.output_path + ".cmd"
    with open(unit.stamp_path) as f:
        assert f.read().split("\n")[1:-1] == unit.command
    assert not unit.is_stale()

    # A missing or different stamp makes the output stale
    os.remove(unit.stamp_path)
    assert unit.is_stale()
    assert run_units(units) == [unit]
    with open(unit.stamp_path, "w") as f:
        f.write("compile\nglslc\n")
    assert unit.is_stale()

    # The same artifact planned as a copy is a different command
    make_precompiled(shader_dir, ["overlay_vert.spv"])
    precompiled = shader_dir / "precompiled" / "overlay_vert.spv"
    os.utime(precompiled, (1, 1))
    toolchain = Toolchain(SPIRV, ToolchainRole.none)
    copies = plan_units(expand_source(source, SPIRV), toolchain, tmp_path / "out")
    assert copies[0].is_stale()
    assert copies[0].run()
    assert not copies[0].is_stale()
    assert units[0].is_stale()


def test_copy_units(shader_dir, tmp_path):
    toolchain = Toolchain(SPIRV, ToolchainRole.none)
    artifacts = expand_source(shader_dir / "overlay_vert.glsl", SPIRV)
    make_precompiled(shader_dir, ["overlay_vert.spv", "multiview/overlay_vert.spv"])
    units = plan_units(artifacts, toolchain, tmp_path / "out")

    assert run_units(units) == units
    for unit in units:
        with open(unit.input_path, "rb") as f1, open(unit.output_path, "rb") as f2:
            assert f1.read() == f2.read()
    assert run_units(units) == []


def test_missing_precompiled_artifact(shader_dir, tmp_path):
    toolchain = Toolchain(SPIRV, ToolchainRole.none)
    artifacts = expand_source(shader_dir / "overlay_frag.glsl", SPIRV)
    make_precompiled(
        shader_dir,
        ["overlay_frag.spv", "multiview/overlay_frag.spv", "multiview/fovDecode/overlay_frag.spv"],
    )
    units = plan_units(artifacts, toolchain, tmp_path / "out")
    missing = units[1]
    assert missing.output_path.endswith(os.path.join("fovDecode", "overlay_frag.spv"))

    # Fail fast: the build stops at the missing file
    with raises(MissingPrecompiledArtifact) as err:
        run_units(units)
    assert err.value.precompiled_path == missing.input_path
    assert isinstance(err.value, FileNotFoundError)
    assert os.path.isfile(units[0].output_path)
    assert not os.path.exists(missing.output_path)
    assert not os.path.exists(units[2].output_path)

    # Keep going: the independent units are built, the error is still raised
    with raises(MissingPrecompiledArtifact):
        run_units(units, keep_going=True)
    assert not os.path.exists(missing.output_path)
    assert os.path.isfile(units[2].output_path)
    assert os.path.isfile(units[3].output_path)
    # And no temporary files are left behind
    assert not os.path.exists(os.path.dirname(missing.output_path))


def test_copy_precompiled(tmp_path):
    src = tmp_path / "a.spv"
    src.write_bytes(b"\x00\x01\x02")
    dst = tmp_path / "deep" / "dir" / "a.spv"
    copy_precompiled(src, dst)
    assert dst.read_bytes() == b"\x00\x01\x02"
    assert os.listdir(dst.parent) == ["a.spv"]

    with raises(MissingPrecompiledArtifact):
        copy_precompiled(tmp_path / "b.spv", tmp_path / "out" / "b.spv")
    assert not (tmp_path / "out").exists()
