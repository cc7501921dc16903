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

"""Check that the external executables a build needs are on PATH."""

import shutil

from nativebuild.build_scripts.errors import ToolchainError

# autotools pair needed to bootstrap a configure script
REQUIRED_TOOLS = ["autoconf", "automake"]


def check_tools(tools, path=None) -> int:
    """
    Check that every tool can be resolved on the search path.

    Prints one line per missing tool. Never aborts, the caller decides
    what a nonzero result means.

    Returns:
        int: number of missing tools, 0 when all are present
    """
    missing = 0
    for tool in tools:
        if shutil.which(tool, path=path) is None:
            print(f"  ❌ {tool}: Not found, please install '{tool}' and make sure it is in PATH")
            missing += 1
    return missing


def default_initialize_needs(hooks, prefix, platform):
    tools = list(REQUIRED_TOOLS)
    for tool in platform.required_tools:
        if tool not in tools:
            tools.append(tool)
    missing = check_tools(tools, path=platform.environ.get("PATH"))
    if missing:
        raise ToolchainError(f"{missing} required tool(s) missing, install them and try again")
