"""The shadervariants CLI.

Invoke using e.g. ``python -m shadervariants build shaders/ --name app_shaders``.
"""

import os
import sys
import logging
import argparse

import shadervariants
from shadervariants.config import load_config
from shadervariants.errors import ShaderVariantsError
from shadervariants.executor import copy_precompiled
from shadervariants.ninja import write_ninja
from shadervariants.pipeline import build_target, compile_shaders, discover_sources
from shadervariants.registrar import TargetRegistry, install_target
from shadervariants.toolchains import select_toolchains
from shadervariants.utils import logger
from shadervariants.utils.enums import Family


def get_parser():
    parser = argparse.ArgumentParser(
        prog="shadervariants",
        description="Compile shader feature variants, or copy precompiled ones.",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log more (repeat for debug output)"
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("help", help="Show this help")
    sub.add_parser("version", help="Show the version")

    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument("--config", help="TOML file with settings")
    config_parser.add_argument(
        "--family",
        action="append",
        choices=list(Family),
        help="Family to build for (repeatable). Default all enabled families.",
    )
    config_parser.add_argument("--vulkan-sdk", help="Vulkan SDK root to search for glslc")
    config_parser.add_argument("--android-ndk", help="Android NDK root to search for glslc")
    for name in ("glslc", "glslangValidator", "dxc", "fxc"):
        config_parser.add_argument(f"--{name.lower()}", dest=f"tool_{name}", help=f"Path of {name}")

    sub.add_parser("probe", parents=[config_parser], help="Show the selected compilers")

    target_parser = argparse.ArgumentParser(add_help=False, parents=[config_parser])
    target_parser.add_argument("sources", nargs="+", help="Shader files or directories")
    target_parser.add_argument("--name", default="shaders", help="Name of the build target")
    target_parser.add_argument("-o", "--output-dir", help="Base output directory")
    target_parser.add_argument(
        "--exclude", action="append", default=[], help="File name to skip in directories"
    )

    sub.add_parser("plan", parents=[target_parser], help="List the artifacts to produce")
    build = sub.add_parser("build", parents=[target_parser], help="Build the artifacts")
    build.add_argument("-k", "--keep-going", action="store_true", help="Continue after failures")
    build.add_argument("-f", "--force", action="store_true", help="Rebuild up-to-date artifacts")
    install = sub.add_parser("install", parents=[target_parser], help="Build, then install")
    install.add_argument("destination", help="Directory to install the shaders tree into")
    ninja = sub.add_parser("ninja", parents=[target_parser], help="Write a ninja build file")
    ninja.add_argument("--ninja-file", default="build.ninja", help="The file to write")

    copy = sub.add_parser("copy", help="Copy one precompiled artifact into place")
    copy.add_argument("src")
    copy.add_argument("dst")

    return parser


def _load_config(args):
    tools = {}
    for name in ("glslc", "glslangValidator", "dxc", "fxc"):
        value = getattr(args, f"tool_{name}", None)
        if value:
            tools[name] = value
    return load_config(
        args.config,
        output_dir=getattr(args, "output_dir", None),
        families=args.family,
        vulkan_sdk=args.vulkan_sdk,
        android_ndk=args.android_ndk,
        tools=tools or None,
    )


def _plan(args, config):
    registry = TargetRegistry()
    families = config.families
    for family in families:
        profile = config.get_profile(family)
        sources = []
        for path in args.sources:
            if os.path.isdir(path):
                sources.extend(discover_sources(path, profile, args.exclude))
            elif len(families) == 1 or path.endswith(profile.source_suffix):
                sources.append(path)
        name = args.name if len(families) == 1 else f"{args.name}_{family}"
        compile_shaders(name, sources, family, config, registry=registry)
    return registry


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        argv = ["help"]
    if argv == ["--version"]:
        argv = ["version"]

    parser = get_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(format="%(levelname)s: %(message)s")
        logger.setLevel(logging.DEBUG if args.verbose > 1 else logging.INFO)

    command = args.command
    try:
        if command in (None, "help"):
            parser.print_help()
        elif command == "version":
            print("shadervariants v" + shadervariants.__version__)
        elif command == "copy":
            copy_precompiled(args.src, args.dst)
        elif command == "probe":
            config = _load_config(args)
            for family, toolchain in select_toolchains(config.profiles, config).items():
                path = toolchain.compiler.path if toolchain.available else "-"
                print(f"{family:6} {toolchain.role:10} {toolchain.name or 'none':17} {path}")
        else:
            config = _load_config(args)
            registry = _plan(args, config)
            if command == "plan":
                for target in registry:
                    print(f"{target.name}:")
                    for unit in target.units:
                        print(f"  {unit.kind:8} {unit.output_path}")
            elif command == "ninja":
                write_ninja(list(registry), args.ninja_file)
                print(f"Wrote {args.ninja_file}")
            else:
                for target in registry:
                    build_target(
                        target,
                        keep_going=getattr(args, "keep_going", False),
                        force=getattr(args, "force", False),
                    )
                if command == "install":
                    for target in registry:
                        install_target(target, config.output_dir, args.destination)
    except ShaderVariantsError as err:
        logger.error(str(err))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
