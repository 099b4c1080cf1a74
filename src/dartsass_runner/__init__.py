# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Provision the dart-sass compiler and drive it from Python."""

from __future__ import annotations

from importlib import metadata

from .errors import (
    DartSassError,
    ExtractError,
    FetchError,
    FilesystemError,
    MissingToolchainError,
    ProcessFailureError,
    ShortWriteError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from .options import CompileOptions, encode_arguments
from .platforms import PlatformTuple
from .session import DartSass, FilePair, use_dart_sass
from .toolchain import ResolvedToolchain, ToolchainRequest, ToolchainResolver

__all__ = [
    "CompileOptions",
    "DartSass",
    "DartSassError",
    "ExtractError",
    "FetchError",
    "FilePair",
    "FilesystemError",
    "MissingToolchainError",
    "PlatformTuple",
    "ProcessFailureError",
    "ResolvedToolchain",
    "ShortWriteError",
    "ToolchainRequest",
    "ToolchainResolver",
    "UnsupportedArchitectureError",
    "UnsupportedPlatformError",
    "__version__",
    "encode_arguments",
    "use_dart_sass",
]

try:
    __version__ = metadata.version("dartsass-runner")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"
