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

"""Exceptions raised while building a native library."""


class BuildError(Exception):
    """
    Base class for every unrecoverable build failure.

    When raised for a failed external command, command and returncode
    are set and output holds what the command printed.
    """

    def __init__(self, message, command=None, returncode=None, output=""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class ToolchainError(BuildError):
    """A required tool, SDK or NDK is missing, or the host is unsupported"""
    pass


class ConfigureError(BuildError):
    """Bootstrapping or running the configure script failed"""
    pass


class CompileError(BuildError):
    """make or make install failed"""
    pass


class MergeError(BuildError):
    """Per-architecture outputs could not be combined into out/"""
    pass


class ConfigError(BuildError):
    """Invalid NATIVEBUILD.toml, hooks file or command line values"""
    pass


class HookError(BuildError):
    """Unknown hook name"""
    pass
