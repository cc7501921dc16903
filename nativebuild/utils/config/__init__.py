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

"""Build configuration loaded from NATIVEBUILD.toml."""

from .config import BuildConfig, PlatformSettings, load_build_config

__all__ = ['BuildConfig', 'PlatformSettings', 'load_build_config']
