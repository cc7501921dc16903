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
Per-library build configuration.

Reads the optional NATIVEBUILD.toml found at the root of a library:

    [build]
    jobs = 8
    configure_args = ["--enable-static"]
    required_tools = ["pkg-config"]

    [ios]
    archs = ["arm64", "x86_64"]
    configure_args = ["--disable-asm"]
    deployment_target = "9.0"

String values may reference environment variables as ${VAR} or $VAR.
"""

import os
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from nativebuild.build_scripts.errors import ConfigError

CONFIG_FILE_NAME = "NATIVEBUILD.toml"


@dataclass
class PlatformSettings:
    """Settings of one [macos], [ios] or [android] table."""
    archs: List[str] = field(default_factory=list)
    configure_args: List[str] = field(default_factory=list)
    deployment_target: str = ""  # empty means environment or built-in default


class BuildConfig:
    """Handle the build configuration of one library."""

    SUPPORTED_PLATFORMS = ['macos', 'ios', 'android']

    def __init__(self, config: Optional[Dict[str, Any]] = None, environ=None):
        """
        Args:
            config: Parsed NATIVEBUILD.toml, None or empty for defaults
            environ: Mapping used for ${VAR} expansion, os.environ by default
        """
        self.raw_config = config or {}
        self.environ = os.environ if environ is None else environ

        build_config = self.raw_config.get('build', {})
        if not isinstance(build_config, dict):
            raise ConfigError("[build] must be a table")

        self.jobs = build_config.get('jobs')
        if self.jobs is not None and (
            isinstance(self.jobs, bool) or not isinstance(self.jobs, int) or self.jobs <= 0
        ):
            raise ConfigError(f"build.jobs must be a positive integer, got {self.jobs!r}")
        self.configure_args = self._string_list(build_config, 'configure_args', 'build')
        self.required_tools = self._string_list(build_config, 'required_tools', 'build')

        self.platforms = {}
        for platform in self.SUPPORTED_PLATFORMS:
            self.platforms[platform] = self._parse_platform_settings(platform)

    def platform(self, name) -> PlatformSettings:
        return self.platforms.get(name, PlatformSettings())

    def _expand_env(self, value: str) -> str:
        """
        Expand environment variables in configuration values.

        Supports ${VAR_NAME} and $VAR_NAME syntax, unknown names are kept.
        """
        if not isinstance(value, str):
            return value

        pattern1 = re.compile(r'\$\{([^}]+)\}')
        value = pattern1.sub(lambda m: self.environ.get(m.group(1), m.group(0)), value)

        pattern2 = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')
        value = pattern2.sub(lambda m: self.environ.get(m.group(1), m.group(0)), value)

        return value

    def _string_list(self, table, key, table_name) -> List[str]:
        values = table.get(key, [])
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise ConfigError(f"{table_name}.{key} must be a list of strings")
        return [self._expand_env(v) for v in values]

    def _parse_platform_settings(self, name) -> PlatformSettings:
        platform_config = self.raw_config.get(name, {})
        if not isinstance(platform_config, dict):
            raise ConfigError(f"[{name}] must be a table")

        deployment_target = platform_config.get('deployment_target', '')
        if not isinstance(deployment_target, str):
            deployment_target = str(deployment_target)

        return PlatformSettings(
            archs=self._string_list(platform_config, 'archs', name),
            configure_args=self._string_list(platform_config, 'configure_args', name),
            deployment_target=self._expand_env(deployment_target),
        )


def load_build_config(library_path, environ=None) -> BuildConfig:
    """
    Load NATIVEBUILD.toml from a library directory.

    A missing file gives the default configuration.

    Raises:
        ConfigError: if the file cannot be parsed or holds invalid values
    """
    config_file = os.path.join(library_path, CONFIG_FILE_NAME)
    if not os.path.isfile(config_file):
        return BuildConfig(environ=environ)

    try:
        with open(config_file, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Error reading {config_file}: {e}")

    print(f"   📄 Using configuration {config_file}")
    return BuildConfig(toml_data, environ=environ)
