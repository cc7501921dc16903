#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_utils.py
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
Build utility functions shared by the lifecycle hooks.

This module provides:
- Running external commands with an explicit environment
- Universal (fat) binary probing and combining with lipo
- Parallelism detection for make
- File helpers (copy preserving modes, remove trees)
- Console status output in one consistent format
"""

import multiprocessing
import os
import platform
import shlex
import shutil

from nativebuild.build_scripts.errors import BuildError, MergeError
from nativebuild.utils.cmd import cmd_util

# make -j fallback when the cpu count cannot be detected
DEFAULT_JOBS = 3


def print_section(title):
    """Print section header"""
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def print_ok(msg):
    print(f"  ✅ {msg}")


def print_error(msg):
    print(f"  ❌ {msg}")


def print_warning(msg):
    print(f"  ⚠️  {msg}")


def print_info(msg):
    print(f"  ℹ️  {msg}")


def format_elapsed(elapsed):
    """Format a duration in seconds in a human-readable way."""
    if elapsed < 60:
        return f"{elapsed:.2f} seconds"
    elif elapsed < 3600:
        minutes = int(elapsed // 60)
        seconds = elapsed % 60
        return f"{minutes} min {seconds:.1f} sec"
    hours = int(elapsed // 3600)
    minutes = int((elapsed % 3600) // 60)
    seconds = elapsed % 60
    return f"{hours} hr {minutes} min {seconds:.0f} sec"


def get_jobs():
    """Number of parallel make jobs: the cpu count, or DEFAULT_JOBS if unknown."""
    try:
        return multiprocessing.cpu_count()
    except NotImplementedError:
        return DEFAULT_JOBS


def system_is_macos():
    """Check if current platform is macOS/Darwin."""
    return platform.system().lower() == "darwin"


def get_host_arch():
    """Native architecture of this machine, e.g. 'x86_64' or 'arm64'."""
    machine = platform.machine()
    if machine == "aarch64":
        return "arm64"
    return machine


def run_cmd(cmd_args, cwd=None, env=None, error=BuildError):
    """
    Run an external command and fail loudly when it exits nonzero.

    Args:
        cmd_args: Argument list of the command
        cwd: Working directory
        env: Full environment for the process, None to inherit ours
        error: BuildError subclass raised on failure

    Returns:
        str: Combined stdout/stderr of the command

    Raises:
        error: when the command exits with a nonzero code
    """
    cmd_line = " ".join(shlex.quote(str(x)) for x in cmd_args)
    print(f"  $ {cmd_line}")
    err_code, output = cmd_util.exec_command(list(cmd_args), cwd=cwd, env=env)
    if output:
        print(output.rstrip())
    if err_code != 0:
        print(f"!!!!!!!!!!! {cmd_args[0]} failed ({err_code}), cmd:['{cmd_line}'] !!!!!!!!!!!!!!!")
        raise error(
            f"'{cmd_line}' exited with code {err_code}",
            command=list(cmd_args),
            returncode=err_code,
            output=output,
        )
    return output


def lipo_info(lib_path, env=None):
    """
    Inspect a binary with 'lipo -info'.

    Returns:
        tuple: (is_macho, archs) where archs lists the contained architectures.
        Files lipo cannot read (libtool .la files, pkg-config data, scripts)
        give (False, []).
    """
    err_code, output = cmd_util.exec_command(["lipo", "-info", lib_path], env=env)
    if err_code != 0:
        return False, []
    # "Architectures in the fat file: x are: a b" or
    # "Non-fat file: x is architecture: a"
    archs = output.strip().rsplit(":", 1)[-1].split()
    return True, archs


def lipo_libs(src_libs, dst_lib, env=None):
    """
    Create a universal (fat) binary from architecture-specific binaries.

    Args:
        src_libs: List of architecture-specific library file paths
        dst_lib: Destination path for the universal binary
        env: Environment of the lipo process

    Raises:
        MergeError: if lipo fails

    Example:
        lipo_libs(['x86_64/lib/libfoo.a', 'arm64/lib/libfoo.a'], 'out/lib/libfoo.a')
    """
    try:
        os.makedirs(os.path.dirname(dst_lib), exist_ok=True)
    except OSError as e:
        raise MergeError(f"Cannot create {os.path.dirname(dst_lib)}: {e}")
    run_cmd(["lipo", "-create", *src_libs, "-output", dst_lib], env=env, error=MergeError)


def copy_file(src, dst):
    """
    Copy a file or directory, creating destination directories as needed.

    File permission bits are preserved, so executables stay executable.
    """
    if not os.path.exists(src):
        return
    if os.path.isfile(src):
        dst_dir = os.path.dirname(dst)
        if dst_dir:
            os.makedirs(dst_dir, exist_ok=True)
        shutil.copy2(src, dst)
    else:
        shutil.copytree(src, dst, symlinks=True)


def remove_path(path):
    """Remove a file or a directory tree if it exists."""
    if os.path.islink(path) or os.path.isfile(path):
        os.remove(path)
    elif os.path.isdir(path):
        shutil.rmtree(path)
