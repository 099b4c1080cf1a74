# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing status messages for the command line, with optional emoji."""

from __future__ import annotations

from functools import cache

from rich.console import Console
from rich.markup import escape


@cache
def console() -> Console:
    """Return the shared stderr console so compiled CSS on stdout stays clean."""

    return Console(stderr=True, highlight=False)


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _emit(prefix: str, msg: str, style: str | None) -> None:
    console().print(f"{prefix}{escape(msg)}", style=style, soft_wrap=True)


def info(msg: str, *, use_emoji: bool) -> None:
    _emit(emoji("ℹ️ ", use_emoji), msg, None)


def ok(msg: str, *, use_emoji: bool) -> None:
    _emit(emoji("✅ ", use_emoji), msg, "green")


def warn(msg: str, *, use_emoji: bool) -> None:
    _emit(emoji("⚠️ ", use_emoji), msg, "yellow")


def fail(msg: str, *, use_emoji: bool) -> None:
    """Emit an error message, e.g. a compiler diagnostic."""

    _emit(emoji("❌ ", use_emoji), msg, "red")


__all__ = ["console", "emoji", "fail", "info", "ok", "warn"]
