# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line interface for installing dart-sass and compiling stylesheets."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from .config import ConfigError, load_settings
from .errors import DartSassError, ProcessFailureError
from .logging import fail, info, ok, warn
from .options import CompileOptions
from .platforms import PlatformTuple
from .session import DartSass, FilePair, use_dart_sass
from .versioning import is_latest

app = typer.Typer(help="Provision dart-sass and compile SCSS to CSS.", no_args_is_help=True)

_VERSION_OPTION = typer.Option(None, "--version", help="dart-sass release to use, e.g. 1.49.9, or 'latest'.")
_INSTALL_DIR_OPTION = typer.Option(None, "--install-dir", help="Directory holding the toolchain files.")
_EMOJI_OPTION = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output.")
_LOAD_PATH_OPTION = typer.Option(None, "--load-path", "-I", help="Stylesheet import path; repeatable.")
_STYLE_OPTION = typer.Option(None, "--style", "-s", help="Output style: expanded or compressed.")
_CHARSET_OPTION = typer.Option(None, "--charset/--no-charset", help="Emit a @charset or BOM for non-ASCII CSS.")
_ERROR_CSS_OPTION = typer.Option(None, "--error-css/--no-error-css", help="Emit a CSS file describing errors.")
_UPDATE_OPTION = typer.Option(False, "--update", help="Only compile out-of-date stylesheets.")
_NO_SOURCE_MAP_OPTION = typer.Option(False, "--no-source-map", help="Do not generate source maps.")
_SOURCE_MAP_URLS_OPTION = typer.Option(None, "--source-map-urls", help="Source map URL style: relative or absolute.")
_EMBED_SOURCES_OPTION = typer.Option(False, "--embed-sources", help="Embed source file contents in source maps.")
_EMBED_SOURCE_MAP_OPTION = typer.Option(False, "--embed-source-map", help="Embed source map contents in CSS.")
_STOP_ON_ERROR_OPTION = typer.Option(False, "--stop-on-error", help="Stop compiling at the first error.")
_COLOR_OPTION = typer.Option(None, "--color/--no-color", help="Whether the compiler uses terminal colours.")
_UNICODE_OPTION = typer.Option(None, "--unicode/--no-unicode", help="Whether the compiler uses Unicode characters.")
_QUIET_OPTION = typer.Option(False, "--quiet", "-q", help="Do not print compiler warnings.")
_QUIET_DEPS_OPTION = typer.Option(False, "--quiet-deps", help="Do not print warnings from dependencies.")


@app.command("install")
def install_command(
    version: str | None = _VERSION_OPTION,
    platform: PlatformTuple | None = typer.Option(None, "--platform", help="Platform tuple to install."),
    install_dir: Path | None = _INSTALL_DIR_OPTION,
    fail_if_missing: bool = typer.Option(
        False,
        "--fail-if-missing",
        help="Only check for an existing toolchain; never download.",
    ),
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Make sure the dart-sass toolchain is present, downloading it if needed."""

    sass = _open_session(
        emoji=emoji,
        version=version,
        platform=platform,
        install_directory=install_dir,
        fail_if_missing=fail_if_missing or None,
    )
    toolchain = sass.toolchain
    if is_latest(toolchain.version):
        warn("Using the latest release; pass --version to pin the toolchain.", use_emoji=emoji)
    info(f"Executable: {toolchain.executable}", use_emoji=emoji)
    if toolchain.snapshot is not None:
        info(f"Snapshot: {toolchain.snapshot}", use_emoji=emoji)
    ok(f"dart-sass is ready for {toolchain.platform.value}.", use_emoji=emoji)


@app.command("compile")
def compile_command(
    input_file: str = typer.Argument(..., help="Stylesheet to compile, or '-' to read stdin."),
    output_file: Path | None = typer.Argument(None, help="CSS file to write; prints to stdout when omitted."),
    load_path: list[str] | None = _LOAD_PATH_OPTION,
    style: str | None = _STYLE_OPTION,
    charset: bool | None = _CHARSET_OPTION,
    error_css: bool | None = _ERROR_CSS_OPTION,
    update: bool = _UPDATE_OPTION,
    no_source_map: bool = _NO_SOURCE_MAP_OPTION,
    source_map_urls: str | None = _SOURCE_MAP_URLS_OPTION,
    embed_sources: bool = _EMBED_SOURCES_OPTION,
    embed_source_map: bool = _EMBED_SOURCE_MAP_OPTION,
    stop_on_error: bool = _STOP_ON_ERROR_OPTION,
    color: bool | None = _COLOR_OPTION,
    unicode: bool | None = _UNICODE_OPTION,
    quiet: bool = _QUIET_OPTION,
    quiet_deps: bool = _QUIET_DEPS_OPTION,
    version: str | None = _VERSION_OPTION,
    install_dir: Path | None = _INSTALL_DIR_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Compile a single stylesheet."""

    options = _build_options(emoji, locals())
    sass = _open_session(emoji=emoji, version=version, install_directory=install_dir)
    if input_file == "-":
        source = typer.get_text_stream("stdin").read()
        css = _run(sass.compile_from_string_to_string(source, options), emoji=emoji)
        if output_file is not None:
            _write_css(output_file, css, emoji=emoji)
            ok(f"Compiled stdin to {output_file}", use_emoji=emoji)
            return
    elif output_file is None:
        css = _run(sass.compile_from_file_to_string(input_file, options), emoji=emoji)
    else:
        _run(sass.compile_from_file_to_file(input_file, output_file, options), emoji=emoji)
        ok(f"Compiled {input_file} to {output_file}", use_emoji=emoji)
        return
    typer.echo(css, nl=False)


@app.command("batch")
def batch_command(
    pairs: list[str] = typer.Argument(..., help="'input:output' pairs to compile in one run."),
    load_path: list[str] | None = _LOAD_PATH_OPTION,
    style: str | None = _STYLE_OPTION,
    charset: bool | None = _CHARSET_OPTION,
    error_css: bool | None = _ERROR_CSS_OPTION,
    update: bool = _UPDATE_OPTION,
    no_source_map: bool = _NO_SOURCE_MAP_OPTION,
    source_map_urls: str | None = _SOURCE_MAP_URLS_OPTION,
    embed_sources: bool = _EMBED_SOURCES_OPTION,
    embed_source_map: bool = _EMBED_SOURCE_MAP_OPTION,
    stop_on_error: bool = _STOP_ON_ERROR_OPTION,
    color: bool | None = _COLOR_OPTION,
    unicode: bool | None = _UNICODE_OPTION,
    quiet: bool = _QUIET_OPTION,
    quiet_deps: bool = _QUIET_DEPS_OPTION,
    version: str | None = _VERSION_OPTION,
    install_dir: Path | None = _INSTALL_DIR_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Compile several stylesheets, each to its own CSS file."""

    options = _build_options(emoji, locals())
    files = [_parse_pair(pair, emoji=emoji) for pair in pairs]
    sass = _open_session(emoji=emoji, version=version, install_directory=install_dir)
    _run(sass.compile_from_files_to_files(files, options), emoji=emoji)
    ok(f"Compiled {len(files)} stylesheet(s).", use_emoji=emoji)


_OPTION_FIELDS = tuple(CompileOptions.model_fields)
_THREE_VALUED_FIELDS = frozenset({"charset", "error_css", "color", "unicode"})


def _build_options(emoji: bool, values: dict[str, Any]) -> CompileOptions:
    """Translate CLI values into :class:`CompileOptions`; unset flags become ``None``."""

    fields: dict[str, Any] = {}
    for name in _OPTION_FIELDS:
        value = values.get(name)
        if name in _THREE_VALUED_FIELDS:
            if value is not None:
                fields[name] = value
        elif value:
            fields[name] = list(value) if name == "load_path" else value
    try:
        return CompileOptions(**fields)
    except ValidationError as exc:
        fail(f"Invalid compile options: {exc}", use_emoji=emoji)
        raise typer.Exit(code=2) from exc


def _parse_pair(raw: str, *, emoji: bool) -> FilePair:
    try:
        return FilePair.parse(raw)
    except ValueError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=2) from exc


def _write_css(path: Path, css: str, *, emoji: bool) -> None:
    try:
        path.write_text(css, encoding="utf-8")
    except OSError as exc:
        fail(f"Unable to write {path}: {exc}", use_emoji=emoji)
        raise typer.Exit(code=1) from exc


def _open_session(*, emoji: bool, **overrides: Any) -> DartSass:
    try:
        settings = load_settings()
        request = settings.to_request(**overrides)
        return asyncio.run(use_dart_sass(request, client=settings.release_client()))
    except (ConfigError, ValidationError, DartSassError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc


def _run(coroutine: Any, *, emoji: bool) -> Any:
    try:
        return asyncio.run(coroutine)
    except ProcessFailureError as exc:
        fail(exc.stderr.rstrip() or str(exc), use_emoji=emoji)
        raise typer.Exit(code=exc.returncode or 1) from exc
    except (DartSassError, FileNotFoundError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc


def main() -> None:
    app()


__all__ = ["app", "main"]
