# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Platform table describing every supported dart-sass build."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping

from .errors import UnsupportedArchitectureError, UnsupportedPlatformError
from .versioning import meets_minimum

ZIP_ARCHIVE: Final[str] = ".zip"
TAR_GZ_ARCHIVE: Final[str] = ".tar.gz"
SCAFFOLD_DIRECTORY: Final[str] = "dart-sass"
DEFAULT_SNAPSHOT_NAME: Final[str] = "sass.snapshot"


class PlatformTuple(str, Enum):
    """Enumerate the ``<os>-<arch>`` tuples used in release asset names."""

    WINDOWS_X64 = "windows-x64"
    MACOS_X64 = "macos-x64"
    MACOS_ARM64 = "macos-arm64"
    LINUX_X64 = "linux-x64"


@dataclass(frozen=True, slots=True)
class PlatformSpec:
    """Describe how the toolchain for one platform is named, packaged and constrained.

    Attributes:
        os: Operating system identifier as used in release names.
        arch: CPU architecture identifier as used in release names.
        executable_name: Default file name of the installed executable.
        snapshot_name: Default file name of the snapshot loaded by the
            executable, or ``None`` when the executable is self-contained.
        archive_extension: Extension of the release archive.
        archive_executable: Path of the executable inside the archive.
        archive_snapshot: Path of the snapshot inside the archive, if any.
        minimum_version: Oldest release published for this platform.
    """

    os: str
    arch: str
    executable_name: str
    snapshot_name: str | None
    archive_extension: str
    archive_executable: str
    archive_snapshot: str | None
    minimum_version: str | None = None

    @property
    def scaffold_directory(self) -> str:
        """Return the top-level directory the archive unpacks into."""

        return self.archive_executable.split("/", 1)[0]


def _loader_with_snapshot(os_name: str, arch: str, *, executable: str, extension: str) -> PlatformSpec:
    return PlatformSpec(
        os=os_name,
        arch=arch,
        executable_name=executable,
        snapshot_name=DEFAULT_SNAPSHOT_NAME,
        archive_extension=extension,
        archive_executable=f"{SCAFFOLD_DIRECTORY}/src/{executable}",
        archive_snapshot=f"{SCAFFOLD_DIRECTORY}/src/{DEFAULT_SNAPSHOT_NAME}",
    )


PLATFORMS: Final[Mapping[PlatformTuple, PlatformSpec]] = MappingProxyType(
    {
        PlatformTuple.WINDOWS_X64: _loader_with_snapshot("windows", "x64", executable="dart.exe", extension=ZIP_ARCHIVE),
        PlatformTuple.MACOS_X64: _loader_with_snapshot("macos", "x64", executable="dart", extension=TAR_GZ_ARCHIVE),
        PlatformTuple.MACOS_ARM64: PlatformSpec(
            os="macos",
            arch="arm64",
            executable_name="dart",
            snapshot_name=DEFAULT_SNAPSHOT_NAME,
            archive_extension=TAR_GZ_ARCHIVE,
            archive_executable=f"{SCAFFOLD_DIRECTORY}/src/dart",
            archive_snapshot=f"{SCAFFOLD_DIRECTORY}/src/{DEFAULT_SNAPSHOT_NAME}",
            minimum_version="1.48.0",
        ),
        PlatformTuple.LINUX_X64: _loader_with_snapshot("linux", "x64", executable="dart", extension=TAR_GZ_ARCHIVE),
    }
)

_SYSTEM_ALIASES: Final[Mapping[str, str]] = {
    "windows": "windows",
    "darwin": "macos",
    "linux": "linux",
}

_ARCH_ALIASES: Final[Mapping[str, str]] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def platform_spec(target: PlatformTuple) -> PlatformSpec:
    """Return the table entry for ``target``.

    Raises:
        UnsupportedPlatformError: If ``target`` has no table entry.
    """

    try:
        return PLATFORMS[target]
    except KeyError as exc:
        raise UnsupportedPlatformError(f"dart-sass is not available for {target}") from exc


def detect_platform(system: str | None = None, machine: str | None = None) -> PlatformTuple:
    """Return the platform tuple for the running (or the given) OS and CPU.

    Args:
        system: Operating system name as reported by :func:`platform.system`.
        machine: Architecture name as reported by :func:`platform.machine`.

    Returns:
        PlatformTuple: Matching entry of the platform table.

    Raises:
        UnsupportedPlatformError: If the OS, the architecture or their
            combination is not supported.
    """

    raw_system = system if system is not None else platform.system()
    raw_machine = machine if machine is not None else platform.machine()
    os_name = _SYSTEM_ALIASES.get(raw_system.lower())
    if os_name is None:
        raise UnsupportedPlatformError(f"Unsupported operating system '{raw_system}'")
    arch = _ARCH_ALIASES.get(raw_machine.lower())
    if arch is None:
        raise UnsupportedPlatformError(f"Unsupported CPU architecture '{raw_machine}'")
    for target, spec in PLATFORMS.items():
        if spec.os == os_name and spec.arch == arch:
            return target
    raise UnsupportedPlatformError(f"dart-sass is not available for {os_name}-{arch}")


def ensure_version_supported(target: PlatformTuple, version: str) -> None:
    """Raise when ``version`` predates the first release built for ``target``."""

    spec = platform_spec(target)
    if not meets_minimum(version, spec.minimum_version):
        raise UnsupportedArchitectureError(target.value, version, str(spec.minimum_version))


__all__ = [
    "PLATFORMS",
    "PlatformSpec",
    "PlatformTuple",
    "detect_platform",
    "ensure_version_supported",
    "platform_spec",
]
