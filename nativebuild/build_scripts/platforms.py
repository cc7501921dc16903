#!/usr/bin/env python3
# -- coding: utf-8 --
#
# platforms.py
# nativebuild
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

"""
Per-platform toolchain environments.

Every supported platform is one Platform subclass. For a given architecture
it knows:
- the cross-compile host triple passed to configure (None for native builds)
- the environment overlay (compiler flags, SDK root, PATH additions)
- extra configure arguments
- whether per-arch outputs are combined into fat binaries (Apple) or laid
  out per ABI (Android)

An overlay is an immutable value computed fresh for each architecture. It is
turned into a complete environment mapping for the build processes of that
architecture only, the orchestrator's own os.environ is never modified.

Requirements:
- macOS / iOS: Xcode command line tools (xcrun, lipo)
- Android: NDK with build/tools/make_standalone_toolchain.py, NDK_ROOT set
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from nativebuild.build_scripts.build_utils import (
    get_host_arch,
    get_jobs,
    run_cmd,
    system_is_macos,
)
from nativebuild.build_scripts.errors import ConfigError, ToolchainError
from nativebuild.utils.cmd import cmd_util
from nativebuild.utils.config import BuildConfig, PlatformSettings

# Flag variables the user may already set, computed flags come first
APPENDED_FLAG_VARS = ("CFLAGS", "CXXFLAGS", "CPPFLAGS", "LDFLAGS")

DEFAULT_MACOS_DEPLOYMENT_TARGET = "10.8"
DEFAULT_IOS_DEPLOYMENT_TARGET = "8.0"

# lowest API level with 64-bit ABIs
ANDROID_API_LEVEL = 21

ANDROID_HOST_TRIPLES = {
    "arm": "arm-linux-androideabi",
    "arm64": "aarch64-linux-android",
    "x86": "i686-linux-android",
    "x86_64": "x86_64-linux-android",
}


@dataclass(frozen=True)
class EnvironmentOverlay:
    """Environment of one architecture build."""
    variables: Tuple[Tuple[str, str], ...] = ()
    path_prepend: Tuple[str, ...] = ()
    # NAME=value arguments given to make
    make_variables: Tuple[Tuple[str, str], ...] = ()

    def get(self, name, default=None):
        return dict(self.variables).get(name, default)

    def apply(self, base_env) -> Dict[str, str]:
        """
        Build the full environment for a subprocess.

        Args:
            base_env: Environment the overlay is laid over, it is not modified

        Returns:
            dict: a new mapping; ambient CFLAGS/CXXFLAGS/CPPFLAGS/LDFLAGS are
            appended after the computed value rather than replaced
        """
        env = dict(base_env)
        for name, value in self.variables:
            ambient = env.get(name, "") if name in APPENDED_FLAG_VARS else ""
            env[name] = f"{value} {ambient}".strip()
        if self.path_prepend:
            search_path = list(self.path_prepend)
            if env.get("PATH"):
                search_path.append(env["PATH"])
            env["PATH"] = os.pathsep.join(search_path)
        return env

    def make_args(self):
        return [f"{name}={value}" for name, value in self.make_variables]


class Platform:
    """
    Base class of a target platform.

    An instance also carries the options of the current run (jobs, extra
    configure arguments, environment snapshot) since it is the platform
    value handed to every hook.
    """

    name = ""
    default_archs = ()
    fat_binaries = False

    def __init__(
        self,
        settings: Optional[PlatformSettings] = None,
        environ=None,
        jobs=None,
        configure_args=(),
        required_tools=(),
    ):
        self.settings = settings or PlatformSettings()
        # snapshot, later changes to os.environ do not leak into builds
        self.environ = dict(os.environ if environ is None else environ)
        self.jobs = jobs or get_jobs()
        self.extra_configure_args = list(configure_args)
        self.required_tools = list(required_tools)

    def __repr__(self):
        return f"{type(self).__name__}()"

    def host_triple(self, arch) -> Optional[str]:
        return None

    def overlay(self, arch, prefix) -> EnvironmentOverlay:
        raise NotImplementedError

    def configure_args(self, arch) -> list:
        return self.settings.configure_args + self.extra_configure_args

    def deployment_target(self, env_var, default) -> str:
        # environment > NATIVEBUILD.toml > built-in default
        return self.environ.get(env_var) or self.settings.deployment_target or default


def xcrun_sdk_path(sdk, environ=None):
    """
    Locate an Apple SDK with xcrun.

    Raises:
        ToolchainError: when xcrun is missing or does not know the SDK
    """
    err_code, output = cmd_util.exec_command(
        ["xcrun", "--sdk", sdk, "--show-sdk-path"], env=environ
    )
    sdk_path = output.strip().splitlines()[-1] if output.strip() else ""
    if err_code != 0 or not sdk_path:
        raise ToolchainError(
            f"Cannot locate the '{sdk}' SDK with xcrun ({err_code}), "
            "make sure Xcode and its command line tools are installed",
            command=["xcrun", "--sdk", sdk, "--show-sdk-path"],
            returncode=err_code,
            output=output,
        )
    return sdk_path


class MacOSPlatform(Platform):
    name = "macos"
    default_archs = ("x86_64", "arm64")
    fat_binaries = True

    def overlay(self, arch, prefix) -> EnvironmentOverlay:
        sdk_root = xcrun_sdk_path("macosx", self.environ)
        min_version = self.deployment_target(
            "MACOSX_DEPLOYMENT_TARGET", DEFAULT_MACOS_DEPLOYMENT_TARGET
        )
        flags = f"-arch {arch} -flto -mmacosx-version-min={min_version} -isysroot {sdk_root}"
        return EnvironmentOverlay(
            variables=(
                ("SDKROOT", sdk_root),
                ("MACOSX_DEPLOYMENT_TARGET", min_version),
                ("CFLAGS", flags),
                ("CXXFLAGS", flags),
                ("LDFLAGS", flags),
            ),
        )


class IOSPlatform(Platform):
    name = "ios"
    default_archs = ("armv7", "arm64", "x86_64")
    fat_binaries = True

    @staticmethod
    def is_device_arch(arch):
        # simulator archs are the desktop ones
        return "arm" in arch

    def host_triple(self, arch) -> Optional[str]:
        if self.is_device_arch(arch):
            return "arm-apple-darwin"
        return f"{arch}-apple-darwin"

    def configure_args(self, arch) -> list:
        args = []
        if self.is_device_arch(arch):
            args.append("--disable-shared")
        return args + super().configure_args(arch)

    def overlay(self, arch, prefix) -> EnvironmentOverlay:
        min_version = self.deployment_target(
            "IPHONEOS_DEPLOYMENT_TARGET", DEFAULT_IOS_DEPLOYMENT_TARGET
        )
        if self.is_device_arch(arch):
            sdk_root = xcrun_sdk_path("iphoneos", self.environ)
            flags = (
                f"-arch {arch} -mthumb -fembed-bitcode "
                f"-miphoneos-version-min={min_version} -isysroot {sdk_root}"
            )
        else:
            sdk_root = xcrun_sdk_path("iphonesimulator", self.environ)
            flags = f"-arch {arch} -mios-simulator-version-min={min_version} -isysroot {sdk_root}"
        return EnvironmentOverlay(
            variables=(
                ("SDKROOT", sdk_root),
                ("IPHONEOS_DEPLOYMENT_TARGET", min_version),
                ("CFLAGS", flags),
                ("CXXFLAGS", flags),
                ("LDFLAGS", flags),
            ),
        )


class AndroidPlatform(Platform):
    name = "android"
    default_archs = ("arm", "arm64", "x86", "x86_64")
    fat_binaries = False

    def ndk_root(self):
        """
        NDK installation from NDK_ROOT.

        Raises:
            ToolchainError: if NDK_ROOT is unset or not a directory
        """
        ndk_path = self.environ.get("NDK_ROOT", "")
        if not ndk_path:
            raise ToolchainError("Error: ndk does not exist or you do not set it into NDK_ROOT.")
        if not os.path.isdir(ndk_path):
            raise ToolchainError(f"Error: NDK_ROOT is set to '{ndk_path}' but directory doesn't exist")
        return ndk_path

    def host_triple(self, arch) -> Optional[str]:
        if arch not in ANDROID_HOST_TRIPLES:
            raise ConfigError(
                f"Unknown android architecture '{arch}', "
                f"expected one of: {', '.join(ANDROID_HOST_TRIPLES)}"
            )
        return ANDROID_HOST_TRIPLES[arch]

    def make_toolchain(self, arch, prefix):
        """Install the standalone toolchain of arch under the prefix."""
        self.host_triple(arch)
        script = os.path.join(self.ndk_root(), "build", "tools", "make_standalone_toolchain.py")
        if not os.path.isfile(script):
            raise ToolchainError(f"NDK toolchain script not found: {script}")
        install_dir = prefix.toolchain_path(arch)
        run_cmd(
            [
                sys.executable, script,
                "--arch", arch,
                "--api", str(ANDROID_API_LEVEL),
                "--install-dir", install_dir,
                "--force",
            ],
            env=self.environ,
            error=ToolchainError,
        )
        return install_dir

    def overlay(self, arch, prefix) -> EnvironmentOverlay:
        toolchain = self.make_toolchain(arch, prefix)
        flags = "-O2 -fPIC"
        ldflags = f"-avoid-version {self.environ.get('LDFLAGS', '')}".strip()
        return EnvironmentOverlay(
            variables=(
                ("CC", "clang"),
                ("CXX", "clang++"),
                ("CFLAGS", flags),
                ("CXXFLAGS", flags),
            ),
            path_prepend=(os.path.join(toolchain, "bin"),),
            # libtool link flag, android does not load libfoo.so.1
            make_variables=(("LDFLAGS", ldflags),),
        )


PLATFORMS = {
    MacOSPlatform.name: MacOSPlatform,
    IOSPlatform.name: IOSPlatform,
    AndroidPlatform.name: AndroidPlatform,
}

HOST_PLATFORM = "host"


def get_platform_names():
    return [HOST_PLATFORM] + list(PLATFORMS)


def resolve_platform_name(name=None):
    """
    Resolve a requested platform name.

    Returns:
        tuple: (platform_name, archs) where archs is the native architecture
        for 'host' and None otherwise

    Raises:
        ToolchainError: 'host' on an operating system this tool cannot target
        ConfigError: unknown platform name
    """
    if not name or name == HOST_PLATFORM:
        if system_is_macos():
            return MacOSPlatform.name, [get_host_arch()]
        raise ToolchainError(
            "Only macOS hosts can be resolved automatically, "
            f"pass a platform explicitly ({', '.join(PLATFORMS)})"
        )
    if name not in PLATFORMS:
        raise ConfigError(
            f"Unknown platform '{name}', expected one of: {', '.join(get_platform_names())}"
        )
    return name, None


def create_platform(
    name,
    config: Optional[BuildConfig] = None,
    environ=None,
    jobs=None,
    configure_args=(),
) -> Platform:
    """Instantiate the Platform for name with the run's settings."""
    config = config or BuildConfig(environ=environ)
    klass = PLATFORMS[name]
    return klass(
        settings=config.platform(name),
        environ=environ,
        jobs=jobs or config.jobs,
        configure_args=list(config.configure_args) + list(configure_args),
        required_tools=config.required_tools,
    )
