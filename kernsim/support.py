"""User-level string helpers and the system call numbering."""

from __future__ import annotations

import enum
from typing import IO, Union

StrLike = Union[str, bytes, bytearray, memoryview]


class SyscallNumber(enum.IntEnum):
    """Numbers of the system calls a user program can make."""

    HALT = 1
    EXECUTE = 2
    READ = 3
    WRITE = 4
    OPEN = 5
    CLOSE = 6
    GETARGS = 7
    VIDMAP = 8
    SET_HANDLER = 9
    SIGRETURN = 10


def _as_bytes(s: StrLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _byte_at(data: bytes, index: int) -> int:
    """Byte at ``index``; the end of the data reads as a NUL terminator."""
    return data[index] if index < len(data) else 0


def strlen(s: StrLike) -> int:
    """Number of characters before the first NUL (or the whole length)."""
    data = _as_bytes(s)
    end = data.find(b"\0")
    return len(data) if end < 0 else end


def strcmp(s1: StrLike, s2: StrLike) -> int:
    """Compare two NUL-terminated strings as unsigned bytes.

    Returns zero when equal, otherwise the difference of the first
    differing bytes.
    """
    a, b = _as_bytes(s1), _as_bytes(s2)
    i = 0
    while True:
        ca, cb = _byte_at(a, i), _byte_at(b, i)
        if ca != cb:
            return ca - cb
        if ca == 0:
            return 0
        i += 1


def strncmp(s1: StrLike, s2: StrLike, n: int) -> int:
    """Compare at most ``n`` characters of two NUL-terminated strings."""
    if n <= 0:
        return 0
    a, b = _as_bytes(s1), _as_bytes(s2)
    remaining = n
    i = 0
    while True:
        ca, cb = _byte_at(a, i), _byte_at(b, i)
        if ca != cb:
            return ca - cb
        remaining -= 1
        if ca == 0 or remaining == 0:
            return 0
        i += 1


def fdputs(stream: IO, s: StrLike) -> int:
    """Write ``s`` up to its first NUL to ``stream``; return the count written."""
    if isinstance(s, str):
        text = s.split("\0", 1)[0]
        stream.write(text)
        return len(text)
    data = bytes(s).split(b"\0", 1)[0]
    stream.write(data)
    return len(data)