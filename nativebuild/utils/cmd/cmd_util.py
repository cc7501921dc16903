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

import subprocess
import time
from threading import Timer

DEFAULT_TIMEOUT_SECOND = 10
# configure + make for one architecture can be slow on big libraries
BUILD_TIMEOUT_SECOND = 3 * 3600


def decode_bytes(input: bytes) -> str:
    """Decode process output as UTF-8, undecodable bytes are kept as \\xNN escapes."""
    if not input:
        return ""
    return bytes.decode(input, "UTF-8", errors="backslashreplace")


def exec_command(command, cwd=None, env=None):
    # timeout is 3 hours
    return exec_command_with_timeout_second(
        command, BUILD_TIMEOUT_SECOND, cwd=cwd, env=env
    )


def exec_command_with_timeout_second(
    command,
    timeout_second=DEFAULT_TIMEOUT_SECOND,
    cwd=None,
    env=None,
    stdout=subprocess.PIPE,
    stderr=subprocess.STDOUT,
):
    """
    Run a command and wait for it, killing it after timeout_second.

    Args:
        command: Argument list, or a shell string
        timeout_second: Seconds before the process is killed
        cwd: Working directory for the process
        env: Complete environment mapping for the process (None inherits ours)

    Returns:
        tuple: (exit_code, output) where output is the combined stdout/stderr
    """
    start_mills = int(time.time() * 1000)
    try:
        compile_popen = subprocess.Popen(
            command,
            shell=isinstance(command, str),
            cwd=cwd,
            env=env,
            stdout=stdout,
            stderr=stderr,
        )
    except FileNotFoundError as e:
        # same code a shell reports for an unknown command
        return 127, f"Command not found: {e.filename or command}"
    except OSError as e:
        # not executable, shells report 126
        return 126, f"Cannot execute {e.filename or command}: {e.strerror or e}"
    timer = Timer(timeout_second, lambda process: process.kill(), [compile_popen])
    try:
        timer.start()
        stdout, stderr = compile_popen.communicate()
    finally:
        timer.cancel()
    err_code = compile_popen.returncode
    err_msg = decode_bytes(stdout)
    if err_code == -9:
        if not err_msg:
            if stderr:
                err_msg = decode_bytes(stderr)
            if not err_msg:
                use_time = int(time.time() * 1000) - start_mills
                err_msg = f"Failed for timeout({err_code}), use_time: {use_time}ms"
    return err_code, err_msg
