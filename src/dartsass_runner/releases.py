# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Client for the dart-sass GitHub release host."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Final, Protocol

import requests

from .errors import FetchError, FilesystemError
from .platforms import PlatformTuple, platform_spec
from .versioning import is_latest, tag_from_location

LOGGER = logging.getLogger(__name__)

DEFAULT_RELEASE_BASE_URL: Final[str] = "https://github.com/sass/dart-sass/releases"
DEFAULT_TIMEOUT: Final[float] = 60.0
TOOLCHAIN_NAME: Final[str] = "dart-sass"
_CHUNK_SIZE: Final[int] = 64 * 1024


class _HttpResponse(Protocol):
    """Subset of :class:`requests.Response` used by the client."""

    status_code: int
    headers: Mapping[str, str]

    def iter_content(self, chunk_size: int = 1) -> Iterable[bytes]:
        """Yield response body chunks."""

    def close(self) -> None:
        """Release the underlying connection."""


class _HttpSession(Protocol):
    """Subset of :class:`requests.Session` used by the client."""

    def get(self, url: str, **kwargs: object) -> _HttpResponse:
        """Issue a GET request."""


def archive_name(version: str, target: PlatformTuple) -> str:
    """Return the release asset file name for ``version`` on ``target``."""

    return f"{TOOLCHAIN_NAME}-{version}-{target.value}{platform_spec(target).archive_extension}"


class ReleaseClient:
    """Resolve release tags and download toolchain archives.

    Args:
        base_url: Releases root, e.g. ``https://github.com/sass/dart-sass/releases``.
        timeout: Per-request timeout in seconds.
        session: HTTP session; a fresh :class:`requests.Session` when omitted.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_RELEASE_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: _HttpSession | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: _HttpSession = session if session is not None else requests.Session()

    def latest_version(self) -> str:
        """Return the tag the floating ``latest`` release currently redirects to.

        Raises:
            FetchError: If the host does not answer with a redirect.
        """

        url = f"{self.base_url}/latest"
        response = self._get(url, allow_redirects=False)
        try:
            location = response.headers.get("Location") or response.headers.get("location")
            if not 300 <= response.status_code < 400 or not location:
                raise FetchError(url, response.status_code, "expected a redirect to the latest release")
        finally:
            response.close()
        tag = tag_from_location(location)
        LOGGER.debug("Resolved latest dart-sass release to %s", tag)
        return tag

    def resolve_version(self, version: str) -> str:
        return self.latest_version() if is_latest(version) else version

    def download_url(self, version: str, target: PlatformTuple) -> str:
        return f"{self.base_url}/download/{version}/{archive_name(version, target)}"

    def download_archive(self, version: str, target: PlatformTuple, directory: Path) -> Path:
        """Stream the release archive for ``version``/``target`` into ``directory``.

        Args:
            version: Concrete release version (never ``"latest"``).
            target: Platform tuple selecting the asset.
            directory: Destination directory, which must already exist.

        Returns:
            Path: Location of the downloaded archive.

        Raises:
            FetchError: On network failure or a non-2xx response.
            FilesystemError: If the archive cannot be written.
        """

        url = self.download_url(version, target)
        destination = directory / archive_name(version, target)
        LOGGER.info("Downloading %s", url)
        response = self._get(url, stream=True)
        try:
            if not 200 <= response.status_code < 300:
                raise FetchError(url, response.status_code)
            try:
                with destination.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
            except requests.RequestException as exc:
                raise FetchError(url, None, str(exc)) from exc
            except OSError as exc:
                raise FilesystemError("write", destination, str(exc)) from exc
        finally:
            response.close()
        return destination

    def _get(self, url: str, **kwargs: object) -> _HttpResponse:
        try:
            return self._session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise FetchError(url, None, str(exc)) from exc


__all__ = [
    "DEFAULT_RELEASE_BASE_URL",
    "DEFAULT_TIMEOUT",
    "ReleaseClient",
    "archive_name",
]
