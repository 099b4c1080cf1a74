# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compilation entry points bound to one resolved toolchain."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple, TypeAlias

from .config import load_settings
from .options import CompileOptions, encode_arguments
from .process import StreamTopology, run_checked
from .releases import ReleaseClient
from .toolchain import ResolvedToolchain, ToolchainRequest, ToolchainResolver

STDIN_MARKER = "--stdin"

PathLike: TypeAlias = str | os.PathLike[str]
OptionsLike: TypeAlias = CompileOptions | Mapping[str, Any] | None


class FilePair(NamedTuple):
    """Input stylesheet and the CSS file it compiles to."""

    input_file: PathLike
    output_file: PathLike

    @property
    def operand(self) -> str:
        return f"{os.fspath(self.input_file)}:{os.fspath(self.output_file)}"

    @classmethod
    def parse(cls, raw: str) -> "FilePair":
        """Split an ``input:output`` operand on its last colon."""

        input_file, separator, output_file = raw.rpartition(":")
        if not separator or not input_file or not output_file:
            raise ValueError(f"Expected 'input:output', got '{raw}'")
        return cls(input_file, output_file)

    @classmethod
    def coerce(cls, value: "FilePair | str | tuple[PathLike, PathLike] | Mapping[str, PathLike]") -> "FilePair":
        if isinstance(value, FilePair):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, Mapping):
            input_file = value.get("input_file", value.get("inputFile"))
            output_file = value.get("output_file", value.get("outputFile"))
            if input_file is None or output_file is None:
                raise ValueError("file pairs require 'input_file' and 'output_file'")
            return cls(input_file, output_file)
        if len(value) != 2:
            raise ValueError(f"file pairs have exactly two paths, got {len(value)}")
        input_file, output_file = value
        return cls(input_file, output_file)


class DartSass:
    """Run dart-sass compilations with a fixed toolchain.

    Instances are normally obtained from :func:`use_dart_sass`, which resolves
    the toolchain before handing the session out.
    """

    def __init__(self, toolchain: ResolvedToolchain) -> None:
        self._toolchain = toolchain

    @property
    def toolchain(self) -> ResolvedToolchain:
        return self._toolchain

    def command(self, options: OptionsLike = None) -> list[str]:
        """Return the argument vector for ``options`` without positional operands."""

        return encode_arguments(self._toolchain.command_prefix, CompileOptions.coerce(options))

    async def compile_from_string_to_string(self, source: str, options: OptionsLike = None) -> str:
        """Compile ``source`` fed through stdin and return the CSS."""

        command = self.command(options)
        command.append(STDIN_MARKER)
        return str(await run_checked(command, StreamTopology.STDIN, payload=source))

    async def compile_from_file_to_string(self, input_file: PathLike, options: OptionsLike = None) -> str:
        """Compile ``input_file`` and return the CSS printed by the compiler."""

        command = self.command(options)
        command.append(os.fspath(input_file))
        return str(await run_checked(command, StreamTopology.STDOUT))

    async def compile_from_file_to_file(
        self,
        input_file: PathLike,
        output_file: PathLike,
        options: OptionsLike = None,
    ) -> None:
        """Compile ``input_file`` into ``output_file`` (plus its source map, if enabled)."""

        command = self.command(options)
        command.append(FilePair(input_file, output_file).operand)
        await run_checked(command, StreamTopology.STDERR)

    async def compile_from_files_to_files(
        self,
        files: Iterable[FilePair | tuple[PathLike, PathLike] | Mapping[str, PathLike]],
        options: OptionsLike = None,
    ) -> None:
        """Compile every input/output pair of ``files`` in a single compiler run."""

        command = self.command(options)
        command.extend(FilePair.coerce(pair).operand for pair in files)
        await run_checked(command, StreamTopology.STDERR)


async def use_dart_sass(
    request: ToolchainRequest | Mapping[str, Any] | None = None,
    *,
    client: ReleaseClient | None = None,
) -> DartSass:
    """Resolve (and, if necessary, download) the toolchain and return a session.

    Args:
        request: Toolchain request or a mapping of its fields. When omitted the
            request and release client come from :func:`dartsass_runner.config.load_settings`.
        client: Release host client used when the toolchain must be downloaded.

    Returns:
        DartSass: Session bound to the resolved toolchain.
    """

    if request is None:
        settings = load_settings()
        request = settings.to_request()
        client = client or settings.release_client()
    elif not isinstance(request, ToolchainRequest):
        request = ToolchainRequest.model_validate(dict(request))
    resolver = ToolchainResolver(client)
    toolchain = await asyncio.to_thread(resolver.resolve, request)
    return DartSass(toolchain)


__all__ = ["DartSass", "FilePair", "STDIN_MARKER", "use_dart_sass"]
