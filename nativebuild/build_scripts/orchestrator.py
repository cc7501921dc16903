#!/usr/bin/env python3
# -- coding: utf-8 --
#
# orchestrator.py
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
Drive the full lifecycle of one library for one platform.

    initialize
    clean                    (clean requested: stop here)
    <out/.success exists>    (stop here, nothing to do)
    prepare
    target                   (once per architecture, in order)
    finalize

State moves UNSTARTED, INITIALIZED, then CLEANED or SKIPPED or PREPARED.
Each architecture passes CONFIGURED and BUILT, the merge sets MERGED and the
end of finalize FINALIZED. Any BuildError leaves the state FAILED.

Architectures are built one after the other. The first failure stops the
run, nothing is merged and no success marker is written, so the next run
starts again from prepare.
"""

import importlib.util
import os
from enum import Enum

from nativebuild.build_scripts.build_target import build_arch
from nativebuild.build_scripts.build_utils import print_info, print_ok
from nativebuild.build_scripts.errors import BuildError, ConfigError
from nativebuild.build_scripts.hooks import HookRegistry
from nativebuild.build_scripts.platforms import create_platform, resolve_platform_name
from nativebuild.build_scripts.workspace import BuildPrefix, resolve_library
from nativebuild.utils.config import load_build_config

HOOKS_FILE_NAME = "nativebuild_hooks.py"


class BuildState(Enum):
    UNSTARTED = "unstarted"
    INITIALIZED = "initialized"
    CLEANED = "cleaned"
    SKIPPED = "skipped"
    PREPARED = "prepared"
    CONFIGURED = "configured"
    BUILT = "built"
    MERGED = "merged"
    FINALIZED = "finalized"
    FAILED = "failed"


# states entered when a sub-step hook returns
HOOK_STATES = {
    "target_configure": BuildState.CONFIGURED,
    "finalize_merge": BuildState.MERGED,
}


def load_library_hooks(hooks, library):
    """
    Let a library customize its hooks.

    A nativebuild_hooks.py at the library root must define register(hooks),
    it is called before anything runs.

    Returns:
        bool: True if a hooks file was found and registered
    """
    hooks_file = os.path.join(library.path, HOOKS_FILE_NAME)
    if not os.path.isfile(hooks_file):
        return False
    module_name = f"nativebuild_hooks_{library.name.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, hooks_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    register = getattr(module, "register", None)
    if not callable(register):
        raise ConfigError(f"{hooks_file} must define register(hooks)")
    register(hooks)
    print(f"   🪝 Using hooks from {hooks_file}")
    return True


class Orchestrator:
    """Build one library for one platform."""

    def __init__(self, hooks=None, environ=None, work_dir=None):
        """
        Args:
            hooks: HookRegistry to use, a fresh one with the defaults if None
            environ: Base environment of the build, os.environ if None
            work_dir: Directory libraries are resolved in, cwd if None
        """
        self.hooks = hooks or HookRegistry()
        self.environ = dict(os.environ if environ is None else environ)
        self.work_dir = work_dir
        self.state = BuildState.UNSTARTED
        self.built_archs = []
        self.prefix = None
        self.platform = None
        self.archs = []

    def setup(self, library_name, platform_name=None, archs=None, jobs=None, configure_args=()):
        """Resolve library, platform, architectures and prefix of a run."""
        library = resolve_library(library_name, self.work_dir)
        config = load_build_config(library.path, environ=self.environ)
        load_library_hooks(self.hooks, library)

        platform_name, host_archs = resolve_platform_name(platform_name)
        self.platform = create_platform(
            platform_name,
            config=config,
            environ=self.environ,
            jobs=jobs,
            configure_args=configure_args,
        )
        self.archs = list(
            archs
            or host_archs
            or config.platform(platform_name).archs
            or self.platform.default_archs
        )
        if not self.archs:
            raise ConfigError(f"No architectures to build for {platform_name}")
        self.prefix = BuildPrefix(library.path, platform_name)
        return library

    def run(
        self,
        library_name,
        platform_name=None,
        archs=None,
        clean=False,
        jobs=None,
        configure_args=(),
    ) -> BuildState:
        """
        Run the lifecycle.

        Returns:
            BuildState: FINALIZED, CLEANED or SKIPPED

        Raises:
            BuildError: any failure, state is then FAILED
        """
        self.state = BuildState.UNSTARTED
        self.built_archs = []
        self.hooks.add_listener(self._on_hook_done)
        try:
            self.setup(library_name, platform_name, archs, jobs, configure_args)
            return self._run_lifecycle(clean)
        except BuildError:
            self.state = BuildState.FAILED
            raise
        finally:
            self.hooks.remove_listener(self._on_hook_done)

    def _on_hook_done(self, name):
        if name in HOOK_STATES:
            self.state = HOOK_STATES[name]

    def _run_lifecycle(self, clean):
        hooks, prefix, platform = self.hooks, self.prefix, self.platform

        hooks.run("initialize", prefix, platform)
        self.state = BuildState.INITIALIZED

        if clean:
            hooks.run("clean", prefix, platform)
            self.state = BuildState.CLEANED
            print_ok(f"Cleaned {prefix.path}")
            return self.state

        if prefix.is_successful():
            print_info(
                f"{prefix.out_path} is already built, "
                f"run clean first to build {platform.name} again"
            )
            self.state = BuildState.SKIPPED
            return self.state

        hooks.run("prepare", prefix, platform, list(self.archs))
        self.state = BuildState.PREPARED

        for arch in self.archs:
            build_arch(hooks, prefix, platform, arch)
            self.built_archs.append(arch)
            self.state = BuildState.BUILT

        hooks.run("finalize", prefix, platform, list(self.archs))
        self.state = BuildState.FINALIZED
        return self.state
