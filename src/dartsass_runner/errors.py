# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised while provisioning and running dart-sass."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class DartSassError(RuntimeError):
    """Base class for every failure surfaced by ``dartsass_runner``."""


class UnsupportedPlatformError(DartSassError):
    """Raised when the operating system or CPU architecture has no toolchain build."""


class UnsupportedArchitectureError(UnsupportedPlatformError):
    """Raised when a known platform requires a newer toolchain than requested."""

    def __init__(self, platform: str, version: str, minimum: str) -> None:
        super().__init__(
            f"dart-sass {version} is not available for {platform}; version {minimum} or newer is required",
        )
        self.platform = platform
        self.version = version
        self.minimum = minimum


class MissingToolchainError(DartSassError):
    """Raised when required toolchain files are absent and downloads are disabled."""

    def __init__(self, missing: Sequence[Path]) -> None:
        joined = ", ".join(str(path) for path in missing)
        super().__init__(f"dart-sass toolchain is missing: {joined}")
        self.missing = tuple(missing)


class FetchError(DartSassError):
    """Raised when the release host cannot be reached or answers with an error."""

    def __init__(self, url: str, status: int | None, reason: str | None = None) -> None:
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        super().__init__(f"Failed to fetch {url}: {detail}")
        self.url = url
        self.status = status
        self.reason = reason


class ExtractError(DartSassError):
    """Raised when a downloaded archive cannot be unpacked."""

    def __init__(self, archive: Path, reason: str) -> None:
        super().__init__(f"Failed to extract {archive}: {reason}")
        self.archive = archive
        self.reason = reason


class FilesystemError(DartSassError):
    """Raised when installing files into the toolchain directory fails."""

    def __init__(self, operation: str, path: Path, reason: str | None = None) -> None:
        message = f"Failed to {operation} {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.operation = operation
        self.path = path
        self.reason = reason


class ShortWriteError(DartSassError):
    """Raised when the compiler stops reading stdin before the payload was delivered."""

    def __init__(self, written: int, expected: int) -> None:
        super().__init__(f"failed to write to stdin: wrote {written} of {expected} bytes")
        self.written = written
        self.expected = expected


class ProcessFailureError(DartSassError):
    """Raised when the compiler exits with a non-zero status.

    The exception message is the compiler's diagnostic output verbatim so callers
    can surface it unchanged.
    """

    def __init__(self, command: Sequence[str], returncode: int, stderr: str) -> None:
        super().__init__(stderr or f"Command '{command[0]}' exited with status {returncode}")
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "DartSassError",
    "ExtractError",
    "FetchError",
    "FilesystemError",
    "MissingToolchainError",
    "ProcessFailureError",
    "ShortWriteError",
    "UnsupportedArchitectureError",
    "UnsupportedPlatformError",
]
