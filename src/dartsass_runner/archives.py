# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Unpack downloaded toolchain archives."""

from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path

from .errors import ExtractError
from .platforms import TAR_GZ_ARCHIVE, ZIP_ARCHIVE


def extract_archive(archive: Path, directory: Path) -> None:
    """Extract every member of ``archive`` into ``directory``.

    Args:
        archive: ``.zip`` or ``.tar.gz`` file produced by the release host.
        directory: Destination directory.

    Raises:
        ExtractError: If the format is unknown or the archive is unreadable.
    """

    name = archive.name
    try:
        if name.endswith(TAR_GZ_ARCHIVE):
            with tarfile.open(archive, "r:gz") as bundle:
                bundle.extractall(path=directory, filter="data")
            return
        if name.endswith(ZIP_ARCHIVE):
            with zipfile.ZipFile(archive) as bundle:
                bundle.extractall(path=directory)
            return
    except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as exc:
        raise ExtractError(archive, str(exc)) from exc
    raise ExtractError(archive, "unsupported archive format")


__all__ = ["extract_archive"]
