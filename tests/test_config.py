"""Tests for NATIVEBUILD.toml loading."""

import pytest

from nativebuild.build_scripts.errors import ConfigError
from nativebuild.utils.config import BuildConfig, PlatformSettings, load_build_config


def test_defaults_without_file(library):
    config = load_build_config(str(library), environ={})

    assert config.jobs is None
    assert config.configure_args == []
    assert config.required_tools == []
    assert config.platform("android") == PlatformSettings()


def test_full_file(library):
    (library / "NATIVEBUILD.toml").write_text(
        "[build]\n"
        "jobs = 8\n"
        'configure_args = ["--enable-static", "--with-zlib=${ZLIB_HOME}"]\n'
        'required_tools = "pkg-config"\n'
        "\n"
        "[ios]\n"
        'archs = ["arm64", "x86_64"]\n'
        'configure_args = ["--disable-asm"]\n'
        'deployment_target = "9.0"\n'
    )

    config = load_build_config(str(library), environ={"ZLIB_HOME": "/opt/zlib"})

    assert config.jobs == 8
    assert config.configure_args == ["--enable-static", "--with-zlib=/opt/zlib"]
    assert config.required_tools == ["pkg-config"]
    assert config.platform("ios") == PlatformSettings(
        archs=["arm64", "x86_64"], configure_args=["--disable-asm"], deployment_target="9.0"
    )
    assert config.platform("macos").archs == []


def test_env_expansion_keeps_unknown_names():
    config = BuildConfig(
        {"android": {"configure_args": ["--with-ssl=$OPENSSL_DIR", "--x=${MISSING}"]}},
        environ={"OPENSSL_DIR": "/ssl"},
    )
    assert config.platform("android").configure_args == ["--with-ssl=/ssl", "--x=${MISSING}"]


def test_numeric_deployment_target_is_text():
    config = BuildConfig({"macos": {"deployment_target": 11.0}}, environ={})
    assert config.platform("macos").deployment_target == "11.0"


@pytest.mark.parametrize("jobs", [0, -2, "4", True, 1.5])
def test_invalid_jobs(jobs):
    with pytest.raises(ConfigError, match="jobs"):
        BuildConfig({"build": {"jobs": jobs}}, environ={})


@pytest.mark.parametrize(
    "raw",
    [
        {"build": {"configure_args": [1, 2]}},
        {"build": {"required_tools": {"a": "b"}}},
        {"android": {"archs": ["arm", 3]}},
        {"ios": "arm64"},
        {"build": ["jobs"]},
    ],
)
def test_invalid_values(raw):
    with pytest.raises(ConfigError):
        BuildConfig(raw, environ={})


def test_malformed_file(library):
    (library / "NATIVEBUILD.toml").write_text("[build\njobs = \n")
    with pytest.raises(ConfigError, match="Error reading"):
        load_build_config(str(library), environ={})
