# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the compilation session built on the fake compiler."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import SCSS_SOURCE, ArgvLog, ExplodingSession
from pydantic import ValidationError

from dartsass_runner.errors import ProcessFailureError
from dartsass_runner.options import CompileOptions
from dartsass_runner.platforms import PlatformTuple
from dartsass_runner.releases import ReleaseClient
from dartsass_runner.session import STDIN_MARKER, DartSass, FilePair, use_dart_sass
from dartsass_runner.toolchain import ResolvedToolchain, ToolchainRequest


def test_command_uses_toolchain_prefix(sass: DartSass, fake_toolchain: ResolvedToolchain) -> None:
    command = sass.command({"style": "compressed", "quiet": True})

    assert command == [*fake_toolchain.command_prefix, "--style=compressed", "--quiet"]


def test_command_rejects_invalid_options(sass: DartSass) -> None:
    with pytest.raises(ValidationError):
        sass.command({"noSourceMap": True, "embedSources": True})


@pytest.mark.asyncio
async def test_compile_from_string_to_string(sass: DartSass, argv_log: ArgvLog) -> None:
    css = await sass.compile_from_string_to_string(SCSS_SOURCE)

    assert css == SCSS_SOURCE
    assert argv_log.entries()[-1] == [STDIN_MARKER]


@pytest.mark.asyncio
async def test_compile_from_string_to_string_passes_options(sass: DartSass, argv_log: ArgvLog) -> None:
    css = await sass.compile_from_string_to_string("a {\n  b: c;\n}\n", CompileOptions(style="compressed"))

    assert css == "a{b:c;}\n"
    assert argv_log.entries()[-1] == ["--style=compressed", STDIN_MARKER]


@pytest.mark.asyncio
async def test_compile_from_string_to_string_failure(sass: DartSass) -> None:
    with pytest.raises(ProcessFailureError) as excinfo:
        await sass.compile_from_string_to_string('@error "nope";')

    assert excinfo.value.returncode == 65
    assert str(excinfo.value) == "Error: stdin: @error\n"


@pytest.mark.asyncio
async def test_compile_from_file_to_string(sass: DartSass, scss_file: Path, argv_log: ArgvLog) -> None:
    css = await sass.compile_from_file_to_string(scss_file, {"loadPath": ["lib"]})

    assert css == SCSS_SOURCE
    assert argv_log.entries()[-1] == ["--load-path=lib", str(scss_file)]


@pytest.mark.asyncio
async def test_compile_from_file_to_file_writes_source_map(sass: DartSass, scss_file: Path) -> None:
    output = scss_file.with_name("test.css")

    result = await sass.compile_from_file_to_file(scss_file, output)

    assert result is None
    assert output.read_text(encoding="utf-8").endswith("/*# sourceMappingURL=test.css.map */\n")
    assert output.with_name("test.css.map").is_file()


@pytest.mark.asyncio
async def test_compile_from_file_to_file_without_source_map(
    sass: DartSass,
    scss_file: Path,
    argv_log: ArgvLog,
) -> None:
    output = scss_file.with_name("test.css")

    await sass.compile_from_file_to_file(scss_file, output, CompileOptions(no_source_map=True))

    assert output.read_text(encoding="utf-8") == SCSS_SOURCE
    assert not output.with_name("test.css.map").exists()
    assert argv_log.entries()[-1] == ["--no-source-map", f"{scss_file}:{output}"]


@pytest.mark.asyncio
async def test_compile_from_file_to_file_failure(sass: DartSass, tmp_path: Path) -> None:
    broken = tmp_path / "broken.scss"
    broken.write_text('@error "boom";', encoding="utf-8")

    with pytest.raises(ProcessFailureError, match="broken.scss: @error"):
        await sass.compile_from_file_to_file(broken, tmp_path / "broken.css")

    assert not (tmp_path / "broken.css").exists()


@pytest.mark.asyncio
async def test_compile_from_files_to_files_preserves_order(
    sass: DartSass,
    tmp_path: Path,
    argv_log: ArgvLog,
) -> None:
    inputs = []
    for index in range(3):
        source = tmp_path / f"in{index}.scss"
        source.write_text(f"p{index} {{ margin: {index}; }}\n", encoding="utf-8")
        inputs.append(source)
    pairs = [
        FilePair(inputs[0], tmp_path / "out0.css"),
        (inputs[1], tmp_path / "out1.css"),
        {"inputFile": str(inputs[2]), "outputFile": str(tmp_path / "out2.css")},
    ]

    await sass.compile_from_files_to_files(pairs)

    assert argv_log.entries()[-1] == [f"{inputs[i]}:{tmp_path / f'out{i}.css'}" for i in range(3)]
    assert sorted(path.name for path in tmp_path.glob("out*.css")) == ["out0.css", "out1.css", "out2.css"]
    assert len(list(tmp_path.glob("out*.css.map"))) == 3
    single = tmp_path / "single.css"
    await sass.compile_from_file_to_file(inputs[1], single)
    assert (tmp_path / "out1.css").read_text(encoding="utf-8") == single.read_text(encoding="utf-8").replace(
        "single.css.map",
        "out1.css.map",
    )


@pytest.mark.asyncio
async def test_compile_from_files_to_files_without_source_maps(sass: DartSass, tmp_path: Path) -> None:
    pairs = []
    for index in range(2):
        source = tmp_path / f"in{index}.scss"
        source.write_text("a { b: c; }\n", encoding="utf-8")
        pairs.append((source, tmp_path / f"out{index}.css"))

    await sass.compile_from_files_to_files(pairs, {"no_source_map": True})

    assert len(list(tmp_path.glob("out*.css"))) == 2
    assert list(tmp_path.glob("*.map")) == []


def test_file_pair_mapping_requires_both_sides() -> None:
    with pytest.raises(ValueError, match="input_file"):
        FilePair.coerce({"input_file": "a.scss"})


def test_file_pair_string_splits_on_last_colon() -> None:
    pair = FilePair.coerce("C:/styles/in.scss:out.css")

    assert pair == FilePair("C:/styles/in.scss", "out.css")
    assert pair.operand == "C:/styles/in.scss:out.css"


@pytest.mark.parametrize("raw", ["in.scss", ":out.css", "in.scss:"])
def test_file_pair_string_requires_both_sides(raw: str) -> None:
    with pytest.raises(ValueError, match="Expected 'input:output'"):
        FilePair.coerce(raw)


def test_file_pair_tuple_requires_two_paths() -> None:
    with pytest.raises(ValueError, match="exactly two paths"):
        FilePair.coerce(("a.scss", "b.css", "c.css"))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_use_dart_sass_resolves_existing_toolchain(tmp_path: Path) -> None:
    (tmp_path / "dart").write_bytes(b"")
    (tmp_path / "sass.snapshot").write_bytes(b"")
    client = ReleaseClient(session=ExplodingSession())  # type: ignore[arg-type]

    sass = await use_dart_sass(
        {"version": "1.49.9", "platform": "linux-x64", "installDirectory": str(tmp_path)},
        client=client,
    )

    assert sass.toolchain.executable == tmp_path / "dart"
    assert sass.toolchain.snapshot == tmp_path / "sass.snapshot"
    assert sass.toolchain.platform is PlatformTuple.LINUX_X64


@pytest.mark.asyncio
async def test_use_dart_sass_reads_configuration(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    install_dir = tmp_path / "toolchain"
    install_dir.mkdir()
    (install_dir / "dart.exe").write_bytes(b"")
    (install_dir / "sass.snapshot").write_bytes(b"")
    (tmp_path / "pyproject.toml").write_text(
        '[tool.dartsass]\nversion = "1.49.9"\nplatform = "windows-x64"\ninstall-directory = "toolchain"\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    for name in ("DARTSASS_VERSION", "DARTSASS_PLATFORM", "DARTSASS_INSTALL_DIR", "DARTSASS_FAIL_IF_MISSING"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DARTSASS_FAIL_IF_MISSING", "true")

    sass = await use_dart_sass()

    assert sass.toolchain.executable == install_dir / "dart.exe"
    assert sass.toolchain.version == "1.49.9"


@pytest.mark.asyncio
async def test_use_dart_sass_accepts_request_model(tmp_path: Path) -> None:
    (tmp_path / "dart").write_bytes(b"")
    (tmp_path / "sass.snapshot").write_bytes(b"")
    request = ToolchainRequest(platform=PlatformTuple.MACOS_X64, install_directory=tmp_path, fail_if_missing=True)

    sass = await use_dart_sass(request)

    assert sass.toolchain.command_prefix == (str(tmp_path / "dart"), str(tmp_path / "sass.snapshot"))
