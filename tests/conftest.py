"""Pytest fixtures for nativebuild tests.

No external process is started by the tests: cmd_util.exec_command is
replaced by FakeRunner, which records every command and simulates what
configure, make install, lipo, xcrun and the NDK toolchain script leave on
disk.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from nativebuild.utils.cmd import cmd_util

FAKE_SDK_ROOT = "/Applications/Xcode.app/SDKs"


@dataclass
class RecordedCall:
    argv: List[str]
    cwd: Optional[str]
    env: Optional[Dict[str, str]]


def install_fake_library(prefix: str) -> None:
    """What 'make install' of a tiny libfoo leaves in an install root."""
    arch = os.path.basename(prefix)
    root = Path(prefix)
    (root / "include" / "foo").mkdir(parents=True, exist_ok=True)
    (root / "include" / "foo.h").write_text("int foo(void);\n")
    (root / "include" / "foo" / "version.h").write_text('#define FOO_VERSION "1.0"\n')
    lib = root / "lib"
    lib.mkdir(parents=True, exist_ok=True)
    # binaries hold the names of the architectures they contain
    (lib / "libfoo.a").write_text(arch)
    (lib / "libfoo.dylib").write_text(arch)
    so = lib / "libfoo.so"
    so.write_text(arch)
    so.chmod(0o755)
    (lib / "libfoo.la").write_text("# libfoo.la - a libtool library file\n")


class FakeRunner:
    def __init__(self):
        self.calls: List[RecordedCall] = []
        self.configured_prefix = None
        self._failures = []

    def fail_when(self, predicate, code=2, output="boom"):
        self._failures.append((predicate, code, output))

    def clear_failures(self):
        self._failures.clear()

    def commands(self):
        return [call.argv for call in self.calls]

    def find(self, *words):
        """Calls whose argv contains every word."""
        return [c for c in self.calls if all(w in c.argv for w in words)]

    def __call__(self, command, cwd=None, env=None):
        argv = [str(x) for x in command]
        self.calls.append(RecordedCall(argv, cwd, dict(env) if env is not None else None))
        for predicate, code, output in self._failures:
            if predicate(argv):
                return code, output
        return self.simulate(argv, cwd)

    def simulate(self, argv, cwd):
        tool = argv[0]
        if tool == "./configure":
            for arg in argv:
                if arg.startswith("--prefix="):
                    self.configured_prefix = arg.split("=", 1)[1]
            Path(cwd, "Makefile").write_text("all:\n")
        elif tool == "make":
            if "distclean" in argv:
                Path(cwd, "Makefile").unlink()
            elif "install" in argv:
                install_fake_library(self.configured_prefix)
        elif tool == "autoreconf":
            Path(cwd, "configure").write_text("#!/bin/sh\n")
        elif tool == "xcrun":
            sdk = argv[argv.index("--sdk") + 1]
            return 0, f"{FAKE_SDK_ROOT}/{sdk}.sdk\n"
        elif tool == "lipo":
            return self.simulate_lipo(argv)
        elif tool == "git" and argv[1] == "rev-parse":
            return 128, "fatal: not a git repository (or any of the parent directories): .git\n"
        elif len(argv) > 1 and argv[1].endswith("make_standalone_toolchain.py"):
            install_dir = argv[argv.index("--install-dir") + 1]
            os.makedirs(os.path.join(install_dir, "bin"), exist_ok=True)
        return 0, ""

    def simulate_lipo(self, argv):
        if argv[1] == "-info":
            path = argv[2]
            if not path.endswith((".a", ".dylib")):
                return 1, f"fatal error: lipo: can't figure out the architecture type of: {path}\n"
            archs = Path(path).read_text().split()
            if len(archs) > 1:
                return 0, f"Architectures in the fat file: {path} are: {' '.join(archs)}\n"
            return 0, f"Non-fat file: {path} is architecture: {archs[0]}\n"
        if argv[1] == "-create":
            output = argv[argv.index("-output") + 1]
            src_libs = argv[2:argv.index("-output")]
            archs = []
            for src in src_libs:
                archs.extend(Path(src).read_text().split())
            Path(output).write_text(" ".join(archs))
        return 0, ""


@pytest.fixture
def runner(monkeypatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(cmd_util, "exec_command", fake)
    return fake


@pytest.fixture
def tools_present(monkeypatch):
    """Every tool looked up with shutil.which is found."""
    monkeypatch.setattr(
        "nativebuild.build_scripts.toolcheck.shutil.which",
        lambda tool, mode=os.F_OK | os.X_OK, path=None: f"/usr/bin/{tool}",
    )


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """An autotools library 'foo' whose configure script is already generated."""
    lib = tmp_path / "foo"
    lib.mkdir()
    (lib / "configure.ac").write_text("AC_INIT([foo], [1.0])\n")
    (lib / "configure").write_text("#!/bin/sh\n")
    (lib / "foo.c").write_text("int foo(void) { return 42; }\n")
    return lib


@pytest.fixture
def ndk_root(tmp_path: Path) -> Path:
    ndk = tmp_path / "android-ndk"
    tools = ndk / "build" / "tools"
    tools.mkdir(parents=True)
    (tools / "make_standalone_toolchain.py").write_text("# fake\n")
    return ndk


@pytest.fixture
def environ(ndk_root: Path) -> Dict[str, str]:
    return {"PATH": "/usr/bin:/bin", "NDK_ROOT": str(ndk_root)}
