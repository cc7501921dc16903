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
import importlib
import os
import sys

from nativebuild.utils.context.command import CliCommand
from nativebuild.utils.context.context import CliContext
from nativebuild.utils.context.namespace import CliNameSpace

SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """NATIVEBUILD - Multi-architecture builds of autotools libraries

Configures and builds a C/C++ library once per architecture, then merges the
results into one product: fat binaries for macOS/iOS, per-ABI shared objects
for Android.

USAGE:
    nativebuild <command> [options]

COMMANDS:
    build       Build a library: build <library> [<platform>] [clean]
    clean       Remove the build of a library for a platform
    check       Check the tools and SDKs of a platform

EXAMPLES:
    nativebuild build libfoo                # Build for this Mac
    nativebuild build libfoo ios            # Fat iOS libraries
    nativebuild build libfoo android        # Per-ABI .so files
    nativebuild build libfoo android clean  # Start over
    nativebuild check android               # Is the NDK set up?

For more information on a specific command:
    nativebuild <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if not command.startswith("_") and command.endswith(".py"):
                arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def _help_parser(self):
        parser = argparse.ArgumentParser(
            prog="nativebuild",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            choices=self.get_command_list(),
        )
        return parser

    def cli(self, argv=None) -> CliNameSpace:
        argv = sys.argv[1:] if argv is None else list(argv)
        # Only 'nativebuild --help' is handled here, 'nativebuild build --help'
        # belongs to the subcommand
        if len(argv) == 1 and argv[0] in ['--help', '-h']:
            self._help_parser().print_help()
            sys.exit(0)

        parser = argparse.ArgumentParser(
            prog="nativebuild",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=False,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs='?',
            choices=self.get_command_list(),
        )
        # parse only known args - this will NOT consume --help if present
        args, unknown = parser.parse_known_args(argv[:1])
        args.subcommand_argv = argv[1:]
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        if not args.subcommand:
            print("ERROR: No command specified\n")
            self._help_parser().print_help()
            sys.exit(1)

        # get module name
        module_name = f"{PACKAGE_NAME}.commands.{args.subcommand}"
        # get class name
        class_name = args.subcommand.capitalize()
        # import module
        module = importlib.import_module(module_name)
        # get class of module
        klass = getattr(module, class_name)
        # instance class
        sub_cmd = klass()
        # now execute the subcommand
        return sub_cmd.exec(context, sub_cmd.cli(args.subcommand_argv))


def main():
    cmd = Cli()
    cmd.exec(CliContext(), cmd.cli())


if __name__ == "__main__":
    main()
