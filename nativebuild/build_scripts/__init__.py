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

"""Lifecycle engine: hooks, platform environments, per-arch builds and merging."""

__all__ = [
    "build_target",
    "build_utils",
    "errors",
    "hooks",
    "merge",
    "orchestrator",
    "platforms",
    "toolcheck",
    "workspace",
]
