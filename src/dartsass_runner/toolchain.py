# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Locate the dart-sass toolchain on disk, downloading it when absent."""

from __future__ import annotations

import logging
import shutil
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import cast

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .archives import extract_archive
from .errors import ExtractError, FilesystemError, MissingToolchainError
from .platforms import PlatformSpec, PlatformTuple, detect_platform, ensure_version_supported, platform_spec
from .releases import ReleaseClient
from .versioning import LATEST, normalize_version

LOGGER = logging.getLogger(__name__)


class ToolchainRequest(BaseModel):
    """Caller-supplied description of the toolchain to use.

    Every field is optional; :meth:`with_defaults` fills the gaps from the
    running platform and the platform table.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    version: str = LATEST
    platform: PlatformTuple | None = None
    install_directory: Path | None = None
    executable_name: str | None = None
    snapshot_name: str | None = None
    fail_if_missing: bool = False

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str) -> str:
        return normalize_version(value)

    def with_defaults(self) -> "ToolchainRequest":
        """Return a copy with platform, directory and file names populated.

        Raises:
            UnsupportedPlatformError: If the running platform is not supported.
        """

        target = self.platform or detect_platform()
        spec = platform_spec(target)
        return self.model_copy(
            update={
                "platform": target,
                "install_directory": self.install_directory or Path.cwd(),
                "executable_name": self.executable_name or spec.executable_name,
                "snapshot_name": (self.snapshot_name or spec.snapshot_name) if spec.snapshot_name else None,
            },
        )


@dataclass(frozen=True, slots=True)
class ResolvedToolchain:
    """Paths of an installed toolchain ready to be executed."""

    executable: Path
    snapshot: Path | None
    version: str
    platform: PlatformTuple

    @property
    def command_prefix(self) -> tuple[str, ...]:
        """Return the leading arguments that invoke the compiler."""

        if self.snapshot is None:
            return (str(self.executable),)
        return (str(self.executable), str(self.snapshot))

    @property
    def required_paths(self) -> tuple[Path, ...]:
        return tuple(path for path in (self.executable, self.snapshot) if path is not None)


class ResolutionState(str, Enum):
    """Enumerate the stages of a single resolution run."""

    UNRESOLVED = "unresolved"
    PROBING = "probing"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    RESOLVED = "resolved"
    FAILED = "failed"


_STATE_ORDER = {state: index for index, state in enumerate(ResolutionState)}


class ToolchainResolver:
    """Turn a :class:`ToolchainRequest` into a :class:`ResolvedToolchain`.

    Resolution either finds all required files on disk (fast path) or runs the
    fetch, extract and install sequence once (slow path). Stages only ever
    advance; any failure moves the resolver to ``FAILED`` and propagates.

    Args:
        client: Release host client used on the slow path.
    """

    def __init__(self, client: ReleaseClient | None = None) -> None:
        self._client = client
        self._state = ResolutionState.UNRESOLVED

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def client(self) -> ReleaseClient:
        if self._client is None:
            self._client = ReleaseClient()
        return self._client

    def resolve(self, request: ToolchainRequest | None = None) -> ResolvedToolchain:
        """Return the toolchain described by ``request``, installing it if needed.

        Args:
            request: Toolchain request; all defaults when omitted.

        Returns:
            ResolvedToolchain: Paths that exist on disk.

        Raises:
            UnsupportedPlatformError: If the platform or version is unsupported.
            MissingToolchainError: If files are missing and ``fail_if_missing`` is set.
            FetchError: If the release host fails.
            ExtractError: If the archive cannot be unpacked.
            FilesystemError: If installing the files fails.
        """

        self._state = ResolutionState.UNRESOLVED
        try:
            return self._resolve(request or ToolchainRequest())
        except BaseException:
            self._advance(ResolutionState.FAILED)
            raise

    def _resolve(self, request: ToolchainRequest) -> ResolvedToolchain:
        populated = request.with_defaults()
        target = cast(PlatformTuple, populated.platform)
        ensure_version_supported(target, populated.version)
        spec = platform_spec(target)
        install_dir = cast(Path, populated.install_directory)
        toolchain = ResolvedToolchain(
            executable=install_dir / str(populated.executable_name),
            snapshot=install_dir / populated.snapshot_name if populated.snapshot_name else None,
            version=populated.version,
            platform=target,
        )

        self._advance(ResolutionState.PROBING)
        missing = [path for path in toolchain.required_paths if not path.exists()]
        if not missing:
            LOGGER.debug("Found dart-sass toolchain at %s", install_dir)
            self._advance(ResolutionState.RESOLVED)
            return toolchain
        if populated.fail_if_missing:
            raise MissingToolchainError(missing)

        self._install(toolchain, spec, install_dir)
        self._advance(ResolutionState.RESOLVED)
        return toolchain

    def _install(self, toolchain: ResolvedToolchain, spec: PlatformSpec, install_dir: Path) -> None:
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError("create directory", install_dir, str(exc)) from exc

        self._advance(ResolutionState.FETCHING)
        version = self.client.resolve_version(toolchain.version)
        ensure_version_supported(toolchain.platform, version)
        archive = self.client.download_archive(version, toolchain.platform, install_dir)

        self._advance(ResolutionState.EXTRACTING)
        extract_archive(archive, install_dir)

        self._advance(ResolutionState.INSTALLING)
        _move_member(archive, install_dir / spec.archive_executable, toolchain.executable)
        _make_executable(toolchain.executable)
        if toolchain.snapshot is not None and spec.archive_snapshot is not None:
            _move_member(archive, install_dir / spec.archive_snapshot, toolchain.snapshot)
        _remove_file(archive)
        _remove_tree(install_dir / spec.scaffold_directory)
        LOGGER.info("Installed dart-sass %s for %s into %s", version, toolchain.platform.value, install_dir)

    def _advance(self, state: ResolutionState) -> None:
        if state is not ResolutionState.FAILED and _STATE_ORDER[state] < _STATE_ORDER[self._state]:
            raise RuntimeError(f"invalid resolution transition {self._state.value} -> {state.value}")
        LOGGER.debug("Toolchain resolution: %s -> %s", self._state.value, state.value)
        self._state = state


def _move_member(archive: Path, source: Path, destination: Path) -> None:
    if not source.exists():
        raise ExtractError(archive, f"archive did not contain {source.name}")
    try:
        source.replace(destination)
    except OSError as exc:
        raise FilesystemError("move", source, str(exc)) from exc


def _make_executable(path: Path) -> None:
    try:
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as exc:
        raise FilesystemError("mark executable", path, str(exc)) from exc


def _remove_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError as exc:
        raise FilesystemError("remove", path, str(exc)) from exc


def _remove_tree(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise FilesystemError("remove", path, str(exc)) from exc


__all__ = ["ResolutionState", "ResolvedToolchain", "ToolchainRequest", "ToolchainResolver"]
