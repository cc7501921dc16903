#!/usr/bin/env python3
# -- coding: utf-8 --
#
# hooks.py
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
Overridable lifecycle hooks.

The lifecycle is a fixed tree of named steps:

    initialize          -> initialize_needs
    clean
    prepare             -> prepare_clean, prepare_config
    target              -> target_prepare, target_configure, target_build
    finalize            -> finalize_merge, finalize_clean

Every hook is a plain function whose first argument is the HookRegistry
running it. Composite defaults dispatch their steps through that registry,
so overriding 'target_configure' also changes what the default 'target'
runs. An override can still run the stock behavior with call_default():

    def register(hooks):
        @hooks.hook("target_configure")
        def configure(hooks, prefix, platform, arch, overlay, extra_args=()):
            hooks.call_default(
                "target_configure", prefix, platform, arch, overlay,
                extra_args=[*extra_args, "--without-docs"],
            )

Hook arguments:
    prefix      BuildPrefix of the (library, platform) build
    platform    Platform of the run (see platforms.py)
    archs       list of architectures, in build order
    arch        one architecture
    overlay     EnvironmentOverlay of that architecture
"""

import os

from nativebuild.build_scripts import build_target, merge, toolcheck, workspace
from nativebuild.build_scripts.build_utils import print_info, run_cmd
from nativebuild.build_scripts.errors import ConfigureError, HookError


def default_initialize(hooks, prefix, platform):
    hooks.run("initialize_needs", prefix, platform)


def default_prepare(hooks, prefix, platform, archs):
    hooks.run("prepare_clean", prefix, platform)
    hooks.run("prepare_config", prefix, platform)


def default_prepare_config(hooks, prefix, platform):
    if os.path.isfile(os.path.join(prefix.library_path, "configure")):
        return
    print_info("No configure script, bootstrapping with autoreconf")
    run_cmd(
        ["autoreconf", "-fi"],
        cwd=prefix.library_path,
        env=platform.environ,
        error=ConfigureError,
    )


def default_finalize(hooks, prefix, platform, archs):
    hooks.run("finalize_merge", prefix, platform, archs)
    hooks.run("finalize_clean", prefix, platform)


# name -> default implementation, in lifecycle order
DEFAULT_HOOKS = {
    "initialize": default_initialize,
    "initialize_needs": toolcheck.default_initialize_needs,
    "clean": workspace.default_clean,
    "prepare": default_prepare,
    "prepare_clean": workspace.default_prepare_clean,
    "prepare_config": default_prepare_config,
    "target": build_target.default_target,
    "target_prepare": build_target.default_target_prepare,
    "target_configure": build_target.default_target_configure,
    "target_build": build_target.default_target_build,
    "finalize": default_finalize,
    "finalize_merge": merge.default_finalize_merge,
    "finalize_clean": workspace.default_finalize_clean,
}

HOOK_NAMES = tuple(DEFAULT_HOOKS)


class HookRegistry:
    """Current implementation and stock default of every lifecycle hook."""

    def __init__(self, defaults=None):
        self._defaults = dict(DEFAULT_HOOKS)
        if defaults:
            for name, func in defaults.items():
                self._check_name(name)
                self._defaults[name] = func
        self._hooks = dict(self._defaults)
        self._listeners = []

    def _check_name(self, name):
        if name not in DEFAULT_HOOKS:
            raise HookError(
                f"Unknown hook '{name}', expected one of: {', '.join(HOOK_NAMES)}"
            )

    def get(self, name):
        self._check_name(name)
        return self._hooks[name]

    def default(self, name):
        self._check_name(name)
        return self._defaults[name]

    def is_overridden(self, name):
        return self.get(name) is not self.default(name)

    def override(self, name, func):
        self._check_name(name)
        if not callable(func):
            raise HookError(f"Hook '{name}' must be callable, got {func!r}")
        self._hooks[name] = func
        return func

    def hook(self, name):
        """Decorator form of override()."""
        self._check_name(name)

        def decorator(func):
            return self.override(name, func)

        return decorator

    def reset(self, name=None):
        """Restore the default of one hook, or of all hooks."""
        if name is None:
            self._hooks = dict(self._defaults)
            return
        self._check_name(name)
        self._hooks[name] = self._defaults[name]

    def add_listener(self, func):
        """func(name) is called each time a hook run by run() returns."""
        self._listeners.append(func)

    def remove_listener(self, func):
        self._listeners.remove(func)

    def run(self, name, *args, **kwargs):
        result = self.get(name)(self, *args, **kwargs)
        for listener in list(self._listeners):
            listener(name)
        return result

    def call_default(self, name, *args, **kwargs):
        return self.default(name)(self, *args, **kwargs)
