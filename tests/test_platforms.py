"""Tests for platform toolchain environments."""

import os

import pytest

from nativebuild.build_scripts import platforms
from nativebuild.build_scripts.errors import ConfigError, ToolchainError
from nativebuild.build_scripts.platforms import (
    AndroidPlatform,
    EnvironmentOverlay,
    IOSPlatform,
    MacOSPlatform,
    create_platform,
    resolve_platform_name,
    xcrun_sdk_path,
)
from nativebuild.build_scripts.workspace import BuildPrefix
from nativebuild.utils.config import BuildConfig

from tests.conftest import FAKE_SDK_ROOT


@pytest.fixture
def prefix(library):
    return BuildPrefix(str(library), "test")


class TestEnvironmentOverlay:
    def test_apply_returns_new_mapping(self):
        base = {"PATH": "/usr/bin", "HOME": "/home/dev"}
        overlay = EnvironmentOverlay(variables=(("CC", "clang"),), path_prepend=("/tc/bin",))

        env = overlay.apply(base)

        assert env["CC"] == "clang"
        assert env["PATH"] == os.pathsep.join(["/tc/bin", "/usr/bin"])
        assert env["HOME"] == "/home/dev"
        assert base == {"PATH": "/usr/bin", "HOME": "/home/dev"}

    def test_ambient_flags_are_appended(self):
        base = {"CFLAGS": "-I/opt/include", "CC": "gcc"}
        overlay = EnvironmentOverlay(variables=(("CFLAGS", "-O2 -fPIC"), ("CC", "clang")))

        env = overlay.apply(base)

        assert env["CFLAGS"] == "-O2 -fPIC -I/opt/include"
        # not a flag variable, replaced
        assert env["CC"] == "clang"

    def test_path_without_base_path(self):
        env = EnvironmentOverlay(path_prepend=("/tc/bin",)).apply({})
        assert env["PATH"] == "/tc/bin"

    def test_make_args(self):
        overlay = EnvironmentOverlay(make_variables=(("LDFLAGS", "-avoid-version"),))
        assert overlay.make_args() == ["LDFLAGS=-avoid-version"]
        assert overlay.get("LDFLAGS") is None


class TestMacOS:
    def test_overlay(self, runner, prefix):
        platform = MacOSPlatform(environ={"PATH": "/usr/bin"}, jobs=2)

        overlay = platform.overlay("arm64", prefix)

        sdk = f"{FAKE_SDK_ROOT}/macosx.sdk"
        expected = f"-arch arm64 -flto -mmacosx-version-min=10.8 -isysroot {sdk}"
        assert overlay.get("CFLAGS") == expected
        assert overlay.get("CXXFLAGS") == expected
        assert overlay.get("LDFLAGS") == expected
        assert overlay.get("SDKROOT") == sdk
        assert platform.host_triple("arm64") is None
        assert runner.commands() == [["xcrun", "--sdk", "macosx", "--show-sdk-path"]]

    def test_deployment_target_from_environment(self, runner, prefix):
        platform = MacOSPlatform(environ={"MACOSX_DEPLOYMENT_TARGET": "11.0"}, jobs=2)
        overlay = platform.overlay("x86_64", prefix)
        assert "-mmacosx-version-min=11.0" in overlay.get("CFLAGS")
        assert overlay.get("MACOSX_DEPLOYMENT_TARGET") == "11.0"

    def test_deployment_target_from_config(self, runner, prefix):
        config = BuildConfig({"macos": {"deployment_target": "10.13"}}, environ={})
        platform = create_platform("macos", config=config, environ={}, jobs=1)
        assert "-mmacosx-version-min=10.13" in platform.overlay("x86_64", prefix).get("CFLAGS")

    def test_missing_sdk_fails(self, runner, prefix):
        runner.fail_when(lambda argv: argv[0] == "xcrun", code=1, output="xcrun: error: SDK cannot be located")
        platform = MacOSPlatform(environ={}, jobs=1)
        with pytest.raises(ToolchainError, match="macosx"):
            platform.overlay("arm64", prefix)


class TestIOS:
    def test_device_arch(self, runner, prefix):
        platform = IOSPlatform(environ={}, jobs=1)

        overlay = platform.overlay("armv7", prefix)

        flags = overlay.get("CFLAGS")
        assert flags.startswith("-arch armv7 -mthumb -fembed-bitcode -miphoneos-version-min=8.0")
        assert flags.endswith(f"-isysroot {FAKE_SDK_ROOT}/iphoneos.sdk")
        assert platform.host_triple("armv7") == "arm-apple-darwin"
        assert platform.host_triple("arm64") == "arm-apple-darwin"
        assert platform.configure_args("arm64") == ["--disable-shared"]

    def test_simulator_arch(self, runner, prefix):
        platform = IOSPlatform(environ={"IPHONEOS_DEPLOYMENT_TARGET": "12.0"}, jobs=1)

        overlay = platform.overlay("x86_64", prefix)

        flags = overlay.get("CFLAGS")
        assert "-mthumb" not in flags
        assert "-fembed-bitcode" not in flags
        assert "-mios-simulator-version-min=12.0" in flags
        assert flags.endswith(f"-isysroot {FAKE_SDK_ROOT}/iphonesimulator.sdk")
        assert platform.host_triple("x86_64") == "x86_64-apple-darwin"
        assert platform.configure_args("x86_64") == []

    def test_configure_args_keep_device_flag_first(self):
        platform = IOSPlatform(environ={}, jobs=1, configure_args=["--enable-static"])
        assert platform.configure_args("armv7") == ["--disable-shared", "--enable-static"]


class TestAndroid:
    def test_missing_ndk_root_fails_fast(self, runner, prefix):
        platform = AndroidPlatform(environ={"PATH": "/usr/bin"}, jobs=1)
        with pytest.raises(ToolchainError, match="NDK_ROOT"):
            platform.overlay("arm", prefix)
        assert runner.calls == []

    def test_ndk_root_not_a_directory(self, runner, prefix, tmp_path):
        platform = AndroidPlatform(environ={"NDK_ROOT": str(tmp_path / "nope")}, jobs=1)
        with pytest.raises(ToolchainError, match="doesn't exist"):
            platform.overlay("arm", prefix)

    def test_missing_toolchain_script(self, runner, prefix, tmp_path):
        ndk = tmp_path / "empty-ndk"
        ndk.mkdir()
        platform = AndroidPlatform(environ={"NDK_ROOT": str(ndk)}, jobs=1)
        with pytest.raises(ToolchainError, match="make_standalone_toolchain.py"):
            platform.overlay("arm64", prefix)

    def test_overlay(self, runner, prefix, environ, ndk_root):
        platform = AndroidPlatform(environ=environ, jobs=1)

        overlay = platform.overlay("arm64", prefix)

        toolchain = prefix.toolchain_path("arm64")
        argv = runner.commands()[0]
        assert argv[1] == str(ndk_root / "build" / "tools" / "make_standalone_toolchain.py")
        assert argv[2:] == [
            "--arch", "arm64", "--api", "21", "--install-dir", toolchain, "--force"
        ]
        assert overlay.get("CC") == "clang"
        assert overlay.get("CXX") == "clang++"
        assert overlay.get("CFLAGS") == "-O2 -fPIC"
        assert overlay.path_prepend == (os.path.join(toolchain, "bin"),)
        assert overlay.make_args() == ["LDFLAGS=-avoid-version"]
        env = overlay.apply(platform.environ)
        assert env["PATH"].split(os.pathsep)[0] == os.path.join(toolchain, "bin")

    def test_ambient_ldflags_reach_make(self, runner, prefix, environ):
        environ["LDFLAGS"] = "-L/opt/lib"
        overlay = AndroidPlatform(environ=environ, jobs=1).overlay("x86", prefix)
        assert overlay.make_args() == ["LDFLAGS=-avoid-version -L/opt/lib"]

    def test_toolchain_failure(self, runner, prefix, environ):
        runner.fail_when(lambda argv: argv[-1] == "--force", code=1)
        with pytest.raises(ToolchainError):
            AndroidPlatform(environ=environ, jobs=1).overlay("arm", prefix)

    def test_host_triples(self):
        platform = AndroidPlatform(environ={}, jobs=1)
        assert platform.host_triple("arm") == "arm-linux-androideabi"
        assert platform.host_triple("arm64") == "aarch64-linux-android"
        assert platform.host_triple("x86") == "i686-linux-android"
        assert platform.host_triple("x86_64") == "x86_64-linux-android"
        with pytest.raises(ConfigError):
            platform.host_triple("mips")


def test_overlay_leaves_os_environ_alone(runner, prefix, environ, monkeypatch):
    monkeypatch.setenv("CFLAGS", "-g")
    before = dict(os.environ)

    for arch in ("arm", "x86_64"):
        platform = AndroidPlatform(environ=environ, jobs=1)
        platform.overlay(arch, prefix).apply(platform.environ)

    assert dict(os.environ) == before


def test_platform_takes_environment_snapshot():
    environ = {"NDK_ROOT": "/ndk"}
    platform = AndroidPlatform(environ=environ, jobs=1)
    environ["NDK_ROOT"] = "/elsewhere"
    assert platform.environ["NDK_ROOT"] == "/ndk"


def test_xcrun_sdk_path_takes_last_line(runner):
    assert xcrun_sdk_path("iphoneos", {}) == f"{FAKE_SDK_ROOT}/iphoneos.sdk"


def test_resolve_host_on_macos(monkeypatch):
    monkeypatch.setattr(platforms, "system_is_macos", lambda: True)
    monkeypatch.setattr(platforms, "get_host_arch", lambda: "arm64")
    assert resolve_platform_name("host") == ("macos", ["arm64"])
    assert resolve_platform_name(None) == ("macos", ["arm64"])


def test_resolve_host_elsewhere_fails(monkeypatch):
    monkeypatch.setattr(platforms, "system_is_macos", lambda: False)
    with pytest.raises(ToolchainError, match="pass a platform explicitly"):
        resolve_platform_name("host")


def test_resolve_named_platforms():
    assert resolve_platform_name("ios") == ("ios", None)
    assert resolve_platform_name("android") == ("android", None)
    with pytest.raises(ConfigError, match="Unknown platform"):
        resolve_platform_name("windows")


def test_create_platform_merges_settings():
    config = BuildConfig(
        {
            "build": {"jobs": 6, "configure_args": ["--enable-static"]},
            "android": {"configure_args": ["--disable-asm"]},
        },
        environ={},
    )

    platform = create_platform(
        "android", config=config, environ={}, configure_args=["--with-pic"]
    )

    assert isinstance(platform, AndroidPlatform)
    assert platform.jobs == 6
    assert platform.configure_args("arm") == ["--disable-asm", "--enable-static", "--with-pic"]
    assert create_platform("android", config=config, environ={}, jobs=2).jobs == 2
