# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Asynchronous wrapper around a single compiler subprocess invocation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final, cast

from .errors import ProcessFailureError, ShortWriteError

LOGGER = logging.getLogger(__name__)

_PIPE: Final[int] = asyncio.subprocess.PIPE
_DEVNULL: Final[int] = asyncio.subprocess.DEVNULL
_WRITE_CHUNK_SIZE: Final[int] = 64 * 1024


class StreamTopology(str, Enum):
    """Select which standard streams of the child are connected to us."""

    STDIN = "stdin"
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True, slots=True)
class _StreamPolicy:
    stdin: int
    stdout: int | None
    stderr: int


_POLICIES: Final[dict[StreamTopology, _StreamPolicy]] = {
    StreamTopology.STDIN: _StreamPolicy(stdin=_PIPE, stdout=_PIPE, stderr=_PIPE),
    StreamTopology.STDOUT: _StreamPolicy(stdin=_DEVNULL, stdout=_PIPE, stderr=_PIPE),
    StreamTopology.STDERR: _StreamPolicy(stdin=_DEVNULL, stdout=None, stderr=_PIPE),
}


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Terminal state of one subprocess run."""

    returncode: int
    stdout: str | None
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


async def _read_stream(stream: asyncio.StreamReader | None) -> bytes:
    if stream is None:
        return b""
    return await stream.read()


async def _feed_stdin(writer: asyncio.StreamWriter, payload: bytes) -> int:
    """Write ``payload`` to ``writer`` and close it.

    The transport buffers nothing, so a chunk only counts as written once the
    pipe has accepted all of it.

    Returns:
        int: Number of bytes written.

    Raises:
        ShortWriteError: If the child closed its stdin before the payload was written.
    """

    writer.transport.set_write_buffer_limits(high=0)
    written = 0
    try:
        for offset in range(0, len(payload), _WRITE_CHUNK_SIZE):
            chunk = payload[offset : offset + _WRITE_CHUNK_SIZE]
            writer.write(chunk)
            await writer.drain()
            written += len(chunk)
    except (BrokenPipeError, ConnectionResetError):
        LOGGER.debug("Child closed stdin after %d of %d bytes", written, len(payload))
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            # Bytes still buffered at close were never counted.
            LOGGER.debug("stdin closed with unflushed data after %d of %d bytes", written, len(payload))
    if written != len(payload):
        raise ShortWriteError(written, len(payload))
    return written


async def _release(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


async def run_process(
    argv: Sequence[str],
    topology: StreamTopology,
    *,
    payload: str | None = None,
) -> ProcessOutcome:
    """Run ``argv`` with the streams selected by ``topology`` and wait for it.

    Writing stdin, waiting for the exit status and draining stdout and stderr
    happen concurrently so a child blocked on a full output pipe never
    deadlocks against a parent still writing its input.

    Args:
        argv: Full argument vector, executable first.
        topology: Stream configuration for the child.
        payload: Text written to stdin; only used with ``StreamTopology.STDIN``.

    Returns:
        ProcessOutcome: Exit status and decoded captured streams.

    Raises:
        ShortWriteError: If the child did not accept the whole payload.
        FileNotFoundError: If the executable does not exist.
    """

    policy = _POLICIES[topology]
    command = [str(part) for part in argv]
    LOGGER.debug("Running %s", shlex.join(command))
    process = await asyncio.create_subprocess_exec(
        *command,
        stdin=policy.stdin,
        stdout=policy.stdout,
        stderr=policy.stderr,
    )
    tasks: list[asyncio.Future[object]] = []
    try:
        tasks.append(asyncio.ensure_future(process.wait()))
        tasks.append(asyncio.ensure_future(_read_stream(process.stdout)))
        tasks.append(asyncio.ensure_future(_read_stream(process.stderr)))
        if topology is StreamTopology.STDIN:
            stdin = cast(asyncio.StreamWriter, process.stdin)
            tasks.append(asyncio.ensure_future(_feed_stdin(stdin, (payload or "").encode("utf-8"))))
        results = await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await _release(process)
        await asyncio.gather(*tasks, return_exceptions=True)

    returncode = cast(int, results[0])
    stdout = cast(bytes, results[1])
    stderr = cast(bytes, results[2])
    return ProcessOutcome(
        returncode=returncode,
        stdout=_decode(stdout) if policy.stdout == _PIPE else None,
        stderr=_decode(stderr),
    )


async def run_checked(
    argv: Sequence[str],
    topology: StreamTopology,
    *,
    payload: str | None = None,
) -> str | None:
    """Run ``argv`` and return captured stdout, raising when the child fails.

    Returns:
        str | None: Decoded stdout, or ``None`` when stdout is not captured.

    Raises:
        ProcessFailureError: If the child exits with a non-zero status.
        ShortWriteError: If the child did not accept the whole payload.
    """

    outcome = await run_process(argv, topology, payload=payload)
    if not outcome.succeeded:
        raise ProcessFailureError(argv, outcome.returncode, outcome.stderr)
    return outcome.stdout


__all__ = ["ProcessOutcome", "StreamTopology", "run_checked", "run_process"]
