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
import os
import platform
import shutil
import sys

from nativebuild.build_scripts.build_utils import (
    print_error,
    print_info,
    print_ok,
    print_section,
    print_warning,
    system_is_macos,
)
from nativebuild.build_scripts.errors import ToolchainError
from nativebuild.build_scripts.platforms import (
    DEFAULT_IOS_DEPLOYMENT_TARGET,
    DEFAULT_MACOS_DEPLOYMENT_TARGET,
    PLATFORMS,
    xcrun_sdk_path,
)
from nativebuild.build_scripts.toolcheck import REQUIRED_TOOLS, check_tools
from nativebuild.utils.context.command import CliCommand
from nativebuild.utils.context.context import CliContext
from nativebuild.utils.context.namespace import CliNameSpace

# tools used by the default hooks besides the autotools pair
COMMON_TOOLS = ["autoreconf", "make"]
APPLE_TOOLS = ["xcrun", "lipo"]

APPLE_SDKS = {
    "macos": ["macosx"],
    "ios": ["iphoneos", "iphonesimulator"],
}


class Check(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to check the tools and SDKs a platform build needs.

        Examples:
            nativebuild check android      # Check Android development environment
            nativebuild check ios          # Check iOS development environment
            nativebuild check all          # Check all platforms
        """

    def get_target_list(self) -> list:
        return ["all"] + list(PLATFORMS)

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="nativebuild check",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "target",
            metavar=f"{self.get_target_list()}",
            type=str,
            choices=self.get_target_list(),
            nargs="?",
            default="all",
            help="Platform to check (default: all)",
        )
        input_argv = self.input_argv(argv, __file__)
        args, unknown = parser.parse_known_args(input_argv)
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        print(f"🔍 Checking {args.target} platform configuration...\n")

        checker = PlatformChecker()
        if args.target == "all":
            checker.check_all()
        else:
            checker.check_platform(args.target)
        checker.print_summary()

        if checker.has_errors():
            sys.exit(1)
        return checker.results


class PlatformChecker:
    def __init__(self, environ=None):
        self.environ = dict(os.environ if environ is None else environ)
        self.results = {}
        self.current_os = platform.system()

    def has_errors(self):
        return any(not all(checks.values()) for checks in self.results.values())

    def check_tools(self, tools):
        """Report each tool, returns a dict tool -> found."""
        found = {}
        for tool in tools:
            if check_tools([tool], path=self.environ.get("PATH")) == 0:
                print_ok(f"{tool}: {shutil.which(tool, path=self.environ.get('PATH'))}")
                found[tool] = True
            else:
                found[tool] = False
        return found

    def check_common(self):
        print_section("Autotools")
        return self.check_tools(REQUIRED_TOOLS + COMMON_TOOLS)

    def check_apple(self, name, env_var, default_version):
        checks = self.check_common()
        print_section(f"{name} Platform")
        if not system_is_macos():
            print_warning(f"{name} builds need a macOS host, current OS is {self.current_os}")
        checks.update(self.check_tools(APPLE_TOOLS))
        if checks.get("xcrun"):
            for sdk in APPLE_SDKS[name]:
                try:
                    sdk_path = xcrun_sdk_path(sdk, self.environ)
                    print_ok(f"{sdk} SDK: {sdk_path}")
                    checks[f"{sdk} SDK"] = True
                except ToolchainError as e:
                    print_error(str(e))
                    checks[f"{sdk} SDK"] = False
        version = self.environ.get(env_var)
        if version:
            print_info(f"{env_var}: {version}")
        else:
            print_info(f"{env_var} not set, using {default_version}")
        return checks

    def check_android(self):
        checks = self.check_common()
        print_section("android Platform")
        ndk_root = self.environ.get("NDK_ROOT")
        if not ndk_root:
            print_error("NDK_ROOT: Not set")
            checks["NDK_ROOT"] = False
            return checks
        if not os.path.isdir(ndk_root):
            print_error(f"NDK_ROOT: Set to '{ndk_root}' but directory doesn't exist")
            checks["NDK_ROOT"] = False
            return checks
        print_ok(f"NDK_ROOT: {ndk_root}")
        checks["NDK_ROOT"] = True
        script = os.path.join(ndk_root, "build", "tools", "make_standalone_toolchain.py")
        if os.path.isfile(script):
            print_ok(f"Standalone toolchain script: {script}")
            checks["make_standalone_toolchain.py"] = True
        else:
            print_error(f"Standalone toolchain script not found: {script}")
            checks["make_standalone_toolchain.py"] = False
        return checks

    def check_platform(self, name):
        if name == "macos":
            checks = self.check_apple(
                "macos", "MACOSX_DEPLOYMENT_TARGET", DEFAULT_MACOS_DEPLOYMENT_TARGET
            )
        elif name == "ios":
            checks = self.check_apple(
                "ios", "IPHONEOS_DEPLOYMENT_TARGET", DEFAULT_IOS_DEPLOYMENT_TARGET
            )
        else:
            checks = self.check_android()
        self.results[name] = checks
        return checks

    def check_all(self):
        for name in PLATFORMS:
            self.check_platform(name)

    def print_summary(self):
        """Print summary of check results"""
        print_section("Summary")

        if not self.results:
            print_info("No checks performed")
            return

        for name, checks in self.results.items():
            if all(checks.values()):
                status = "✅ READY"
            elif any(checks.values()):
                status = "⚠️  PARTIAL"
            else:
                status = "❌ NOT READY"
            print(f"  {name.upper()}: {status}")
            for check, result in checks.items():
                if not result:
                    print(f"    ❌ {check}")
