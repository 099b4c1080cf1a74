# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compilation options and their translation into dart-sass CLI arguments."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

OutputStyle: TypeAlias = Literal["expanded", "compressed"]
SourceMapUrls: TypeAlias = Literal["relative", "absolute"]
LoadPath: TypeAlias = str | Path

_SOURCE_MAP_FIELDS: Final[tuple[str, ...]] = ("source_map_urls", "embed_sources", "embed_source_map")


class CompileOptions(BaseModel):
    """Options understood by the dart-sass command line.

    Three-valued flags (``charset``, ``error_css``, ``color``, ``unicode``) emit
    their negated form when ``False`` and nothing when ``None``. Presence flags
    (``update``, ``stop_on_error``, ``quiet``, ``quiet_deps``) only ever emit
    the positive form. ``no_source_map`` excludes the remaining source-map
    settings.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    load_path: LoadPath | list[LoadPath] | None = None
    style: OutputStyle | None = None
    charset: bool | None = None
    error_css: bool | None = None
    update: bool | None = None
    no_source_map: bool | None = None
    source_map_urls: SourceMapUrls | None = None
    embed_sources: bool | None = None
    embed_source_map: bool | None = None
    stop_on_error: bool | None = None
    color: bool | None = None
    unicode: bool | None = None
    quiet: bool | None = None
    quiet_deps: bool | None = None

    @model_validator(mode="after")
    def _check_source_map_shape(self) -> "CompileOptions":
        if not self.no_source_map:
            return self
        conflicting = [name for name in _SOURCE_MAP_FIELDS if getattr(self, name) is not None]
        if conflicting:
            raise ValueError(f"no_source_map cannot be combined with {', '.join(conflicting)}")
        return self

    @classmethod
    def coerce(cls, value: "CompileOptions | Mapping[str, Any] | None") -> "CompileOptions | None":
        """Return ``value`` as a validated model, accepting plain mappings."""

        if value is None or isinstance(value, CompileOptions):
            return value
        return cls.model_validate(dict(value))


@dataclass(frozen=True, slots=True)
class _FlagOption:
    """Declarative mapping between a :class:`CompileOptions` field and CLI arguments."""

    field: str
    kind: Literal["value", "args", "flag", "presence"]
    flag: str
    negate_flag: str | None = None

    def apply(self, options: CompileOptions, command: list[str]) -> None:
        """Append the arguments derived from ``options`` to ``command``.

        Args:
            options: Validated compilation options.
            command: Argument vector being assembled.
        """

        raw_value = getattr(options, self.field)
        if raw_value is None:
            return
        if self.kind == "args":
            values = raw_value if isinstance(raw_value, list) else [raw_value]
            command.extend(f"{self.flag}={entry}" for entry in values)
            return
        if self.kind == "value":
            command.append(f"{self.flag}={raw_value}")
            return
        if self.kind == "flag":
            if raw_value:
                command.append(self.flag)
            elif self.negate_flag:
                command.append(self.negate_flag)
            return
        if raw_value:
            command.append(self.flag)


# Argument order is part of the CLI contract.
_OPTION_TABLE: Final[tuple[_FlagOption, ...]] = (
    _FlagOption("load_path", "args", "--load-path"),
    _FlagOption("style", "value", "--style"),
    _FlagOption("charset", "flag", "--charset", "--no-charset"),
    _FlagOption("error_css", "flag", "--error-css", "--no-error-css"),
    _FlagOption("update", "presence", "--update"),
    _FlagOption("no_source_map", "presence", "--no-source-map"),
    _FlagOption("source_map_urls", "value", "--source-map-urls"),
    _FlagOption("embed_sources", "presence", "--embed-sources"),
    _FlagOption("embed_source_map", "presence", "--embed-source-map"),
    _FlagOption("stop_on_error", "presence", "--stop-on-error"),
    _FlagOption("color", "flag", "--color", "--no-color"),
    _FlagOption("unicode", "flag", "--unicode", "--no-unicode"),
    _FlagOption("quiet", "presence", "--quiet"),
    _FlagOption("quiet_deps", "presence", "--quiet-deps"),
)


def encode_arguments(prefix: Sequence[str], options: CompileOptions | None = None) -> list[str]:
    """Return the argument vector for ``options`` appended to ``prefix``.

    Args:
        prefix: Executable invocation prefix, e.g. ``[dart, sass.snapshot]``.
        options: Optional compilation options.

    Returns:
        list[str]: New argument vector; positional operands are appended by callers.
    """

    command = [str(part) for part in prefix]
    if options is None:
        return command
    for option in _OPTION_TABLE:
        if options.no_source_map and option.field in _SOURCE_MAP_FIELDS:
            continue
        option.apply(options, command)
    return command


__all__ = ["CompileOptions", "LoadPath", "OutputStyle", "SourceMapUrls", "encode_arguments"]
