# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for layered configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from dartsass_runner.config import ConfigError, DartSassSettings, load_settings
from dartsass_runner.platforms import PlatformTuple
from dartsass_runner.releases import DEFAULT_RELEASE_BASE_URL


def _write_pyproject(root: Path, body: str) -> None:
    (root / "pyproject.toml").write_text(body, encoding="utf-8")


def test_defaults_without_configuration(tmp_path: Path) -> None:
    settings = load_settings(tmp_path, env={})

    assert settings == DartSassSettings()
    assert settings.version == "latest"
    assert settings.release_base_url == DEFAULT_RELEASE_BASE_URL
    assert settings.timeout == 60.0


def test_pyproject_section_is_loaded(tmp_path: Path) -> None:
    _write_pyproject(
        tmp_path,
        "[project]\nname = 'site'\n\n"
        "[tool.dartsass]\n"
        "version = '1.49.9'\n"
        "platform = 'macos-arm64'\n"
        "install-directory = 'bin/sass'\n"
        "fail_if_missing = true\n"
        "timeout = 5\n",
    )

    settings = load_settings(tmp_path, env={})

    assert settings.version == "1.49.9"
    assert settings.platform is PlatformTuple.MACOS_ARM64
    assert settings.install_directory == tmp_path / "bin" / "sass"
    assert settings.fail_if_missing is True
    assert settings.timeout == 5


def test_environment_overrides_pyproject(tmp_path: Path) -> None:
    _write_pyproject(tmp_path, "[tool.dartsass]\nversion = '1.49.9'\n")
    env = {
        "DARTSASS_VERSION": "1.50.0",
        "DARTSASS_INSTALL_DIR": str(tmp_path / "abs"),
        "DARTSASS_RELEASE_BASE_URL": "https://mirror.test/releases/",
        "DARTSASS_TIMEOUT": "",
    }

    settings = load_settings(tmp_path, env=env)

    assert settings.version == "1.50.0"
    assert settings.install_directory == tmp_path / "abs"
    client = settings.release_client()
    assert client.base_url == "https://mirror.test/releases"
    assert client.timeout == 60.0


def test_to_request_applies_overrides(tmp_path: Path) -> None:
    settings = load_settings(tmp_path, env={"DARTSASS_PLATFORM": "linux-x64", "DARTSASS_SNAPSHOT_NAME": "s.snap"})

    request = settings.to_request(version="1.49.9", install_directory=None)

    assert request.version == "1.49.9"
    assert request.platform is PlatformTuple.LINUX_X64
    assert request.snapshot_name == "s.snap"
    assert request.install_directory is None


@pytest.mark.parametrize(
    "env",
    [
        {"DARTSASS_VERSION": "banana"},
        {"DARTSASS_PLATFORM": "linux-riscv"},
        {"DARTSASS_TIMEOUT": "-1"},
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, env: dict[str, str]) -> None:
    with pytest.raises(ConfigError, match="Invalid dart-sass configuration"):
        load_settings(tmp_path, env=env)


def test_malformed_pyproject_raises_config_error(tmp_path: Path) -> None:
    _write_pyproject(tmp_path, "[tool.dartsass\nversion = 1\n")

    with pytest.raises(ConfigError, match="Unable to read"):
        load_settings(tmp_path, env={})


def test_non_table_section_raises_config_error(tmp_path: Path) -> None:
    _write_pyproject(tmp_path, "[tool]\ndartsass = 'latest'\n")

    with pytest.raises(ConfigError, match="must be a table"):
        load_settings(tmp_path, env={})


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    _write_pyproject(tmp_path, "[tool.dartsass]\nflavour = 'scss'\n")

    with pytest.raises(ConfigError):
        load_settings(tmp_path, env={})
