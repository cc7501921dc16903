#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_target.py
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
Build one architecture of a library.

The library is configured in its source tree with --prefix pointing at the
architecture's install root inside the build prefix, then compiled and
installed with make. Every process gets the environment of the
architecture's overlay only.
"""

import time

from nativebuild.build_scripts.build_utils import format_elapsed, run_cmd
from nativebuild.build_scripts.errors import CompileError, ConfigureError
from nativebuild.build_scripts.workspace import distclean


def build_arch(hooks, prefix, platform, arch):
    """
    Compute the overlay of arch and run the 'target' hook with it.

    Any BuildError propagates, the caller must not go on with other archs.
    """
    before_time = time.time()
    print(f"==================build {platform.name} {arch}========================")
    overlay = platform.overlay(arch, prefix)
    hooks.run("target", prefix, platform, arch, overlay)
    print(f"use time: {format_elapsed(time.time() - before_time)}")
    return overlay


def default_target(hooks, prefix, platform, arch, overlay):
    hooks.run("target_prepare", prefix, platform, arch, overlay)
    hooks.run("target_configure", prefix, platform, arch, overlay)
    hooks.run("target_build", prefix, platform, arch, overlay)


def default_target_prepare(hooks, prefix, platform, arch, overlay):
    # the previous arch leaves a configured tree behind
    distclean(prefix.library_path, env=overlay.apply(platform.environ))


def default_target_configure(hooks, prefix, platform, arch, overlay, extra_args=()):
    cmd = ["./configure"]
    host = platform.host_triple(arch)
    if host:
        cmd.append(f"--host={host}")
    cmd.append(f"--prefix={prefix.arch_path(arch)}")
    cmd.extend(platform.configure_args(arch))
    cmd.extend(extra_args)
    run_cmd(
        cmd,
        cwd=prefix.library_path,
        env=overlay.apply(platform.environ),
        error=ConfigureError,
    )


def default_target_build(hooks, prefix, platform, arch, overlay):
    env = overlay.apply(platform.environ)
    make_args = overlay.make_args()
    run_cmd(
        ["make", f"-j{platform.jobs}", *make_args],
        cwd=prefix.library_path,
        env=env,
        error=CompileError,
    )
    run_cmd(
        ["make", "install", *make_args],
        cwd=prefix.library_path,
        env=env,
        error=CompileError,
    )
