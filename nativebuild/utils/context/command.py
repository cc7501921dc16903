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

import os
import sys

from nativebuild.utils.context.context import CliContext
from nativebuild.utils.context.namespace import CliNameSpace


# Base class of every sub command, see commands/
class CliCommand:
    def description(self) -> str:
        return ""

    def input_argv(self, argv=None, module_file=None) -> list:
        """Command line arguments without the sub command name itself."""
        if argv is not None:
            return list(argv)
        if not module_file:
            return sys.argv[1:]
        module_name = os.path.splitext(os.path.basename(module_file))[0]
        return [x for x in sys.argv[1:] if x != module_name]

    def cli(self, argv=None) -> CliNameSpace:
        raise NotImplementedError

    def exec(self, context: CliContext, args: CliNameSpace):
        raise NotImplementedError
