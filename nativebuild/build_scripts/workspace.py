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
Library resolution and the per-platform build prefix.

Layout of a prefix:

    <library>/build-<platform>~/
        <arch>/             install root of one architecture (--prefix)
        toolchain-<arch>/   android standalone toolchain
        out/
            include/
            lib/[<abi>/]
            .success        written once the merge completed
"""

import os
from dataclasses import dataclass

from nativebuild.build_scripts.build_utils import print_info, remove_path, run_cmd
from nativebuild.build_scripts.errors import BuildError, ConfigError
from nativebuild.utils.cmd import cmd_util

SUCCESS_MARKER = ".success"


@dataclass(frozen=True)
class Library:
    name: str
    path: str


def resolve_library(name, work_dir=None) -> Library:
    """Resolve a library name to its source tree under work_dir (default: cwd)."""
    if not name:
        raise ConfigError("No library name given")
    path = os.path.abspath(os.path.join(work_dir or os.getcwd(), name))
    if not os.path.isdir(path):
        raise ConfigError(f"Library '{name}' not found at {path}")
    return Library(name=os.path.basename(path), path=path)


class BuildPrefix:
    """Scratch and output directories of one (library, platform) build."""

    def __init__(self, library_path, platform_name):
        self.library_path = os.path.abspath(library_path)
        self.platform_name = platform_name
        self.path = os.path.join(self.library_path, f"build-{platform_name}~")

    def __repr__(self):
        return f"BuildPrefix({self.path!r})"

    def arch_path(self, arch):
        return os.path.join(self.path, arch)

    def toolchain_path(self, arch):
        return os.path.join(self.path, f"toolchain-{arch}")

    @property
    def out_path(self):
        return os.path.join(self.path, "out")

    @property
    def marker_path(self):
        return os.path.join(self.out_path, SUCCESS_MARKER)

    def exists(self):
        return os.path.isdir(self.path)

    def is_successful(self):
        return os.path.isfile(self.marker_path)

    def create(self):
        try:
            os.makedirs(self.path, exist_ok=True)
        except OSError as e:
            raise BuildError(f"Cannot create {self.path}: {e}")

    def destroy(self):
        try:
            remove_path(self.path)
        except OSError as e:
            raise BuildError(f"Cannot remove {self.path}: {e}")

    def recreate(self):
        self.destroy()
        self.create()

    def mark_success(self):
        os.makedirs(self.out_path, exist_ok=True)
        with open(self.marker_path, "w") as f:
            f.write("")


def has_build_metadata(library_path):
    """True when a previous configure left a Makefile in the source tree."""
    return os.path.isfile(os.path.join(library_path, "Makefile"))


def distclean(library_path, env=None):
    """Run 'make distclean' when the tree was configured, otherwise do nothing."""
    if not has_build_metadata(library_path):
        return False
    run_cmd(["make", "distclean"], cwd=library_path, env=env)
    return True


def is_version_controlled(library_path, env=None):
    err_code, output = cmd_util.exec_command(
        ["git", "rev-parse", "--is-inside-work-tree"], cwd=library_path, env=env
    )
    return err_code == 0 and output.strip() == "true"


def default_clean(hooks, prefix, platform):
    print_info(f"Removing {prefix.path}")
    prefix.destroy()
    distclean(prefix.library_path, env=platform.environ)
    if is_version_controlled(prefix.library_path, env=platform.environ):
        # ignored and untracked files both go
        run_cmd(["git", "clean", "-fdx"], cwd=prefix.library_path, env=platform.environ)


def default_prepare_clean(hooks, prefix, platform):
    prefix.recreate()


def default_finalize_clean(hooks, prefix, platform):
    distclean(prefix.library_path, env=platform.environ)
