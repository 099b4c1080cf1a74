# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for validating and comparing dart-sass release versions."""

from __future__ import annotations

import re
from typing import Final

from packaging.version import InvalidVersion, Version

LATEST: Final[str] = "latest"

_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def is_latest(version: str) -> bool:
    return version.strip().lower() == LATEST


def normalize_version(raw: str) -> str:
    """Return ``raw`` as ``"latest"`` or a ``major.minor.patch`` tag.

    Raises:
        ValueError: If ``raw`` is neither ``"latest"`` nor a release version.
    """

    candidate = raw.strip()
    if is_latest(candidate):
        return LATEST
    if not _VERSION_PATTERN.match(candidate):
        raise ValueError(f"'{raw}' is not a dart-sass release version (expected 'latest' or 'X.Y.Z')")
    return candidate


def meets_minimum(version: str, minimum: str | None) -> bool:
    """Return ``True`` when ``version`` is at or above ``minimum``.

    ``"latest"`` is always considered new enough since it names the newest release.
    """

    if minimum is None or is_latest(version):
        return True
    try:
        return Version(version) >= Version(minimum)
    except InvalidVersion:
        return False


def tag_from_location(location: str) -> str:
    """Return the release tag encoded as the final path segment of ``location``."""

    return location.rstrip("/").split("/")[-1]


__all__ = ["LATEST", "is_latest", "meets_minimum", "normalize_version", "tag_from_location"]
