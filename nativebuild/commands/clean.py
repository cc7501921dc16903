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

from nativebuild.build_scripts.errors import BuildError
from nativebuild.build_scripts.orchestrator import Orchestrator
from nativebuild.build_scripts.platforms import get_platform_names
from nativebuild.utils.context.command import CliCommand
from nativebuild.utils.context.context import CliContext
from nativebuild.utils.context.namespace import CliNameSpace


class Clean(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to clean the build of a library.

        Same as 'nativebuild build <library> <platform> clean':
        - removes <library>/build-<platform>~ including out/.success
        - runs 'make distclean' if the source tree was configured
        - removes ignored and untracked files if the library is in a git tree

        Examples:
            nativebuild clean libfoo            # clean the host build
            nativebuild clean libfoo android    # clean the android build
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="nativebuild clean",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "library",
            type=str,
            help="library directory, relative to the current directory",
        )
        parser.add_argument(
            "platform",
            nargs="?",
            default=None,
            type=str,
            choices=get_platform_names(),
            help="platform to clean (default: host)",
        )
        input_argv = self.input_argv(argv, __file__)
        args, unknown = parser.parse_known_args(input_argv)
        if unknown:
            print(f"WARNING: ignoring unknown arguments: {' '.join(unknown)}")
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        print(f"Cleaning {args.library}...\n")
        orchestrator = Orchestrator(work_dir=context.work_dir)
        try:
            return orchestrator.run(args.library, platform_name=args.platform, clean=True)
        except BuildError as e:
            print(f"\nERROR: {e}")
            sys.exit(1)
