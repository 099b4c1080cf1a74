# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration: defaults, ``[tool.dartsass]`` and ``DARTSASS_*`` variables."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, PositiveFloat, ValidationError, field_validator

from .platforms import PlatformTuple
from .releases import DEFAULT_RELEASE_BASE_URL, DEFAULT_TIMEOUT, ReleaseClient
from .toolchain import ToolchainRequest
from .versioning import LATEST, normalize_version

PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "dartsass"

ENVIRONMENT_VARIABLES: Final[Mapping[str, str]] = {
    "DARTSASS_VERSION": "version",
    "DARTSASS_PLATFORM": "platform",
    "DARTSASS_INSTALL_DIR": "install_directory",
    "DARTSASS_EXECUTABLE_NAME": "executable_name",
    "DARTSASS_SNAPSHOT_NAME": "snapshot_name",
    "DARTSASS_FAIL_IF_MISSING": "fail_if_missing",
    "DARTSASS_RELEASE_BASE_URL": "release_base_url",
    "DARTSASS_TIMEOUT": "timeout",
}


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class DartSassSettings(BaseModel):
    """Effective settings used to provision the toolchain."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    version: str = LATEST
    platform: PlatformTuple | None = None
    install_directory: Path | None = None
    executable_name: str | None = None
    snapshot_name: str | None = None
    fail_if_missing: bool = False
    release_base_url: str = DEFAULT_RELEASE_BASE_URL
    timeout: PositiveFloat = DEFAULT_TIMEOUT

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str) -> str:
        return normalize_version(value)

    def to_request(self, **overrides: Any) -> ToolchainRequest:
        """Return a :class:`ToolchainRequest`; ``None`` overrides are ignored."""

        fields = {
            "version": self.version,
            "platform": self.platform,
            "install_directory": self.install_directory,
            "executable_name": self.executable_name,
            "snapshot_name": self.snapshot_name,
            "fail_if_missing": self.fail_if_missing,
        }
        fields.update({key: value for key, value in overrides.items() if value is not None})
        return ToolchainRequest(**fields)

    def release_client(self) -> ReleaseClient:
        return ReleaseClient(base_url=self.release_base_url, timeout=self.timeout)


def load_settings(root: Path | None = None, *, env: Mapping[str, str] | None = None) -> DartSassSettings:
    """Return settings merged from defaults, ``pyproject.toml`` and the environment.

    Args:
        root: Project directory holding ``pyproject.toml``; defaults to the cwd.
        env: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        DartSassSettings: Validated settings with the install directory anchored at ``root``.

    Raises:
        ConfigError: If ``pyproject.toml`` or a value is malformed.
    """

    base = root or Path.cwd()
    merged: dict[str, Any] = {}
    merged.update(_load_pyproject(base / "pyproject.toml"))
    merged.update(_load_environment(os.environ if env is None else env))
    try:
        settings = DartSassSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid dart-sass configuration: {exc}") from exc
    if settings.install_directory is not None and not settings.install_directory.is_absolute():
        settings.install_directory = base / settings.install_directory
    return settings


def _load_pyproject(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    tool_section = data.get(PYPROJECT_TOOL_KEY)
    if not isinstance(tool_section, Mapping):
        return {}
    section = tool_section.get(PYPROJECT_SECTION_KEY)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{PYPROJECT_TOOL_KEY}.{PYPROJECT_SECTION_KEY}] in {path} must be a table")
    return {str(key).replace("-", "_"): value for key, value in section.items()}


def _load_environment(env: Mapping[str, str]) -> dict[str, Any]:
    return {field: env[name] for name, field in ENVIRONMENT_VARIABLES.items() if env.get(name)}


__all__ = ["ConfigError", "DartSassSettings", "ENVIRONMENT_VARIABLES", "load_settings"]
