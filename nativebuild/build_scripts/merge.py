#!/usr/bin/env python3
# -- coding: utf-8 --
#
# merge.py
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
Merge per-architecture install roots into <prefix>/out.

- Headers come from the first architecture, they are the same for all.
- macOS/iOS: every binary of the first architecture's lib/ is combined
  with the same-named binary of the other architectures using lipo.
- Android: each architecture's shared objects go to out/lib/<abi>/.

The success marker is written last, only when everything above succeeded.
"""

import glob
import os
import shutil

from nativebuild.build_scripts.build_utils import (
    copy_file,
    lipo_info,
    lipo_libs,
    print_info,
    print_ok,
    print_section,
    print_warning,
    remove_path,
)
from nativebuild.build_scripts.errors import MergeError

# arch -> android ABI directory, others map to themselves
ANDROID_ABIS = {
    "arm": "armeabi-v7a",
    "arm64": "arm64-v8a",
}


def android_abi(arch):
    return ANDROID_ABIS.get(arch, arch)


def make_out_dir(path):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise MergeError(f"Cannot create {path}: {e}")


def merge_headers(prefix, archs):
    """Copy include/ of the first architecture to out/include."""
    src_include = os.path.join(prefix.arch_path(archs[0]), "include")
    dst_include = os.path.join(prefix.out_path, "include")
    if not os.path.isdir(src_include):
        print_warning(f"{archs[0]} installed no headers, {src_include} missing")
        return None
    try:
        remove_path(dst_include)
        copy_file(src_include, dst_include)
    except (OSError, shutil.Error) as e:
        raise MergeError(f"Failed to copy headers to {dst_include}: {e}")
    return dst_include


def merge_fat_libraries(prefix, archs, env=None):
    """
    Combine same-named binaries of every architecture with lipo.

    Files lipo cannot read are left out of out/lib.

    Args:
        env: Environment of the lipo processes, the platform's snapshot

    Returns:
        list: paths of the merged binaries

    Raises:
        MergeError: a binary is missing for one of the architectures, out/lib
        cannot be created, or lipo fails
    """
    src_lib_dir = os.path.join(prefix.arch_path(archs[0]), "lib")
    if not os.path.isdir(src_lib_dir):
        raise MergeError(f"No libraries installed for {archs[0]}: {src_lib_dir} missing")
    dst_lib_dir = os.path.join(prefix.out_path, "lib")
    make_out_dir(dst_lib_dir)

    merged = []
    for name in sorted(os.listdir(src_lib_dir)):
        first_lib = os.path.join(src_lib_dir, name)
        if not os.path.isfile(first_lib):
            continue
        is_macho, _ = lipo_info(first_lib, env=env)
        if not is_macho:
            print_info(f"Skipping {name}, not a binary lipo can combine")
            continue

        src_libs = []
        for arch in archs:
            arch_lib = os.path.join(prefix.arch_path(arch), "lib", name)
            if not os.path.isfile(arch_lib):
                raise MergeError(f"{name} was not built for {arch}: {arch_lib} missing")
            src_libs.append(arch_lib)

        dst_lib = os.path.join(dst_lib_dir, name)
        lipo_libs(src_libs, dst_lib, env=env)
        merged.append(dst_lib)
    return merged


def merge_android_libraries(prefix, archs):
    """
    Copy the shared objects of every architecture to out/lib/<abi>/.

    Returns:
        dict: abi -> list of copied files

    Raises:
        MergeError: an architecture installed no shared object, or copying fails
    """
    copied = {}
    for arch in archs:
        src_libs = sorted(glob.glob(os.path.join(prefix.arch_path(arch), "lib", "*.so")))
        if not src_libs:
            raise MergeError(f"No shared objects installed for {arch}")
        abi = android_abi(arch)
        dst_dir = os.path.join(prefix.out_path, "lib", abi)
        make_out_dir(dst_dir)
        copied[abi] = []
        for src_lib in src_libs:
            dst_lib = os.path.join(dst_dir, os.path.basename(src_lib))
            try:
                # copy2 keeps the executable bits
                shutil.copy2(src_lib, dst_lib)
            except OSError as e:
                raise MergeError(f"Failed to copy {src_lib} to {dst_dir}: {e}")
            copied[abi].append(dst_lib)
    return copied


def print_merged_architectures(merged_libs, env=None):
    print_section("Verifying merged libraries")
    for lib in merged_libs:
        is_macho, archs = lipo_info(lib, env=env)
        if is_macho:
            print_ok(f"{os.path.basename(lib)}: {' '.join(archs)}")
        else:
            print_warning(f"{os.path.basename(lib)}: cannot be inspected with lipo")


def default_finalize_merge(hooks, prefix, platform, archs):
    if not archs:
        raise MergeError("Nothing to merge, the architecture list is empty")
    merge_headers(prefix, archs)
    if platform.fat_binaries:
        merged = merge_fat_libraries(prefix, archs, env=platform.environ)
        print_merged_architectures(merged, env=platform.environ)
    else:
        merge_android_libraries(prefix, archs)
    try:
        prefix.mark_success()
    except OSError as e:
        raise MergeError(f"Cannot write {prefix.marker_path}: {e}")
    print("==================Output========================")
    print(prefix.out_path)
