"""Host-side stand-ins for the user-level system calls: execute, getargs and directory reads."""

from __future__ import annotations

import errno
import os
import subprocess
from typing import Iterator, Optional, Sequence, Union

MAX_COMMAND_LENGTH = 1023
DIRECTORY_NAME_LENGTH = 32
_KILL_SIGNAL = 9
_ABNORMAL_STATUS = 256


def parse_command(command: str) -> list[str]:
    """Split a command line into an argument vector.

    The program name gets a ``./`` prefix so that it runs from the
    working directory. Words are separated by spaces and a newline ends
    the line.
    """
    if len(command.split("\0", 1)[0]) > MAX_COMMAND_LENGTH:
        raise ValueError(f"command longer than {MAX_COMMAND_LENGTH} characters")
    line = command.split("\0", 1)[0].split("\n", 1)[0]
    words = [word for word in line.split(" ") if word]
    if not words:
        return ["./"]
    return ["./" + words[0], *words[1:]]


def execute(command: str, cwd: Optional[Union[str, os.PathLike]] = None) -> int:
    """Run a program from ``cwd`` and wait for it.

    Returns the program's exit status, -1 when it could not be started
    or was killed, and 256 when another signal ended it.
    """
    args = parse_command(command)
    try:
        completed = subprocess.run(args, cwd=cwd, check=False)
    except OSError:
        return -1
    code = completed.returncode
    if code >= 0:
        return code
    if -code == _KILL_SIGNAL:
        return -1
    return _ABNORMAL_STATUS


def getargs(argv: Sequence[str], nbytes: int) -> str:
    """Join the arguments after the program name with single spaces.

    The result and its terminating NUL must fit in ``nbytes``.
    """
    joined = " ".join(argv[1:])
    if len(joined) + 1 > nbytes:
        raise ValueError(f"arguments do not fit in {nbytes} bytes")
    return joined


class DirectoryReader:
    """Reads the names in a directory one at a time, as the directory file does."""

    def __init__(self, path: Union[str, os.PathLike] = ".") -> None:
        self.path = path
        self._names: Optional[Iterator[str]] = iter(
            [".", "..", *sorted(os.listdir(path))]
        )

    def read(self, nbytes: int) -> bytes:
        """Next name, truncated and NUL-padded to ``min(nbytes, 32)`` bytes.

        Returns an empty result once every name has been read.
        """
        if self._names is None:
            raise ValueError("directory is closed")
        if nbytes < 0:
            raise ValueError("nbytes must not be negative")
        name = next(self._names, None)
        if name is None:
            return b""
        size = min(nbytes, DIRECTORY_NAME_LENGTH)
        data = os.fsencode(name)[:size]
        return data.ljust(size, b"\0")

    def write(self, data: bytes) -> int:
        """Refuse the write: directories cannot be written."""
        if self._names is None:
            raise ValueError("directory is closed")
        size = len(data)
        raise OSError(
            errno.EISDIR,
            f"cannot write {size} bytes to a directory",
            os.fspath(self.path),
        )

    def close(self) -> None:
        """Stop reading; later reads fail."""
        self._names = None

    def __enter__(self) -> "DirectoryReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()