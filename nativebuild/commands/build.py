#
# Copyright 2024 nativebuild Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

import argparse
import sys
import time

from nativebuild.build_scripts.build_utils import format_elapsed
from nativebuild.build_scripts.errors import BuildError, ConfigError
from nativebuild.build_scripts.orchestrator import BuildState, Orchestrator
from nativebuild.build_scripts.platforms import get_platform_names
from nativebuild.utils.context.command import CliCommand
from nativebuild.utils.context.context import CliContext
from nativebuild.utils.context.namespace import CliNameSpace

CLEAN_DIRECTIVE = "clean"


def parse_arch_list(value):
    if not value:
        return None
    archs = [a.strip() for a in value.split(",") if a.strip()]
    return archs or None


def split_build_targets(targets):
    """
    Split the words after the library name.

    Returns:
        tuple: (platform_name or None, clean requested)
    """
    words = list(targets)
    clean = bool(words) and words[-1] == CLEAN_DIRECTIVE
    if clean:
        words = words[:-1]
    if len(words) > 1:
        raise ConfigError(f"Unexpected arguments: {' '.join(words[1:])}")
    platform_name = words[0] if words else None
    if platform_name is not None and platform_name not in get_platform_names():
        raise ConfigError(
            f"Unknown platform '{platform_name}', expected one of: {', '.join(get_platform_names())}"
        )
    return platform_name, clean


class Build(CliCommand):
    def description(self) -> str:
        return f"""Build a native library for every architecture of a platform.

The library is configured and built once per architecture, then the results
are merged into <library>/build-<platform>~/out:

    macos, ios     fat binaries combined with lipo in out/lib/
    android        shared objects in out/lib/<abi>/

A finished build writes out/.success, later runs do nothing until the
library is cleaned.

SUPPORTED PLATFORMS:
    {', '.join(get_platform_names())}   (default: host)

EXAMPLES:
    nativebuild build libfoo                  # build for this machine
    nativebuild build libfoo ios              # armv7, arm64, x86_64
    nativebuild build libfoo android --arch arm,arm64
    nativebuild build libfoo android clean    # remove the android build

ENVIRONMENT VARIABLES:
    NDK_ROOT                     Android NDK (required for android)
    MACOSX_DEPLOYMENT_TARGET     macOS minimum version (default: 10.8)
    IPHONEOS_DEPLOYMENT_TARGET   iOS minimum version (default: 8.0)
    CFLAGS CXXFLAGS CPPFLAGS LDFLAGS  appended to the computed flags
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="nativebuild build",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "library",
            type=str,
            help="library directory, relative to the current directory",
        )
        parser.add_argument(
            "targets",
            nargs="*",
            metavar="platform [clean]",
            help="target platform (default: host), a trailing 'clean' removes the build",
        )
        parser.add_argument(
            "--arch",
            action="store",
            default=None,
            help="comma-separated architectures overriding the platform defaults, e.g. arm,arm64",
        )
        parser.add_argument(
            "-j", "--jobs",
            type=int,
            default=None,
            help="number of parallel make jobs (default: CPU count)",
        )
        parser.add_argument(
            "--configure-arg",
            action="append",
            default=[],
            dest="configure_args",
            help="extra argument for the configure script, may be repeated",
        )
        input_argv = self.input_argv(argv, __file__)
        args, unknown = parser.parse_known_args(input_argv)
        if unknown:
            print(f"WARNING: ignoring unknown arguments: {' '.join(unknown)}")
            print("         use --configure-arg=ARG to pass arguments to configure")
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        start_time = time.time()
        orchestrator = Orchestrator(work_dir=context.work_dir)
        try:
            platform_name, clean = split_build_targets(args.targets)
            state = orchestrator.run(
                args.library,
                platform_name=platform_name,
                archs=parse_arch_list(args.arch),
                clean=clean,
                jobs=args.jobs,
                configure_args=args.configure_args,
            )
        except BuildError as e:
            print(f"\nERROR: {e}")
            print(f"ERROR: Build of {args.library} failed. Stopping immediately.")
            sys.exit(1)

        if state == BuildState.FINALIZED:
            print(f"\n⏱ Build completed in {format_elapsed(time.time() - start_time)}")
        return state
