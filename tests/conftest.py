# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
import json
import sys
import tarfile
import zipfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from dartsass_runner.platforms import PlatformTuple
from dartsass_runner.session import DartSass
from dartsass_runner.toolchain import ResolvedToolchain

FIXTURES = Path(__file__).resolve().parent / "fixtures"

SCSS_SOURCE = "$zero: 0;\nbody {\n\tmargin: $zero;\n}\n"


@dataclass
class FakeResponse:
    """Minimal stand-in for :class:`requests.Response`."""

    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    closed: bool = False

    def iter_content(self, chunk_size: int = 1) -> Iterable[bytes]:
        for offset in range(0, len(self.body), chunk_size):
            yield self.body[offset : offset + chunk_size]

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeSession:
    """Serve canned responses keyed by URL and record every request."""

    responses: dict[str, FakeResponse] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append((url, kwargs))
        try:
            return self.responses[url]
        except KeyError:
            return FakeResponse(status_code=404)


class ExplodingSession:
    """HTTP session that fails the test when any request is attempted."""

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        raise AssertionError(f"unexpected network access: {url}")


def build_tar_gz(members: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_zip(members: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def http_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_toolchain() -> ResolvedToolchain:
    """Toolchain whose executable is this interpreter and whose snapshot is the fake CLI."""

    return ResolvedToolchain(
        executable=Path(sys.executable),
        snapshot=FIXTURES / "fake_sass.py",
        version="1.49.9",
        platform=PlatformTuple.LINUX_X64,
    )


@pytest.fixture
def sass(fake_toolchain: ResolvedToolchain) -> DartSass:
    return DartSass(fake_toolchain)


@pytest.fixture
def argv_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> "ArgvLog":
    path = tmp_path / "argv.log"
    monkeypatch.setenv("FAKE_SASS_LOG", str(path))
    return ArgvLog(path)


@dataclass
class ArgvLog:
    """Read back the argument vectors recorded by the fake compiler."""

    path: Path

    def entries(self) -> list[list[str]]:
        if not self.path.exists():
            return []
        return [json.loads(line) for line in self.path.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def scss_file(tmp_path: Path) -> Path:
    path = tmp_path / "test.scss"
    path.write_text(SCSS_SOURCE, encoding="utf-8")
    return path
