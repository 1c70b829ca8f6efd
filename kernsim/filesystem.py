"""Read-only file system image: boot block, directory entries, inodes and data blocks."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import Union

from kernsim.textfmt import kprintf_format, strncmp, strncpy

BLOCK_SIZE = 4096
MAX_NUM_DIR_ENTRIES = 63
MAX_FILE_NAME_LENGTH = 32
NUM_DATA_BLOCKS = 1023
DENTRY_SIZE = 64
ELF_MAGIC = b"\x7fELF"
ENTRY_POINT_OFFSET = 24

FILE_TYPE_RTC = 0
FILE_TYPE_DIRECTORY = 1
FILE_TYPE_REGULAR = 2

NameLike = Union[str, bytes, bytearray]


class FileSystemError(Exception):
    """Raised when the image is malformed or a lookup or read fails."""


def _name_bytes(fname: NameLike) -> bytes:
    if isinstance(fname, str):
        return fname.encode("latin-1")
    return bytes(fname)


def format_file_name(fname: NameLike) -> str:
    """Render a file name right-aligned in a 32-column field, as listings show it."""
    name = _name_bytes(fname).split(b"\0", 1)[0][:MAX_FILE_NAME_LENGTH]
    return "file_name: " + name.decode("latin-1").rjust(MAX_FILE_NAME_LENGTH)


@dataclass(frozen=True)
class Dentry:
    """One directory entry of the boot block."""

    name: str
    file_type: int
    inode: int


class FileSystem:
    """A file system image held in memory."""

    def __init__(self, image: Union[bytes, bytearray, memoryview]) -> None:
        self.image = bytes(image)
        if len(self.image) < BLOCK_SIZE:
            raise FileSystemError("image is smaller than the boot block")
        (
            self.num_dir_entries,
            self.num_inodes,
            self.num_data_blocks,
        ) = struct.unpack_from("<3I", self.image, 0)
        if self.num_dir_entries > MAX_NUM_DIR_ENTRIES:
            raise FileSystemError(
                f"too many directory entries: {self.num_dir_entries}"
            )
        if len(self.image) < (self.num_inodes + 1) * BLOCK_SIZE:
            raise FileSystemError("image is too small for its inodes")
        self.dir_entries: list[Dentry] = []
        for index in range(self.num_dir_entries):
            offset = DENTRY_SIZE * (index + 1)
            raw_name = self.image[offset : offset + MAX_FILE_NAME_LENGTH]
            file_type, inode = struct.unpack_from(
                "<2I", self.image, offset + MAX_FILE_NAME_LENGTH
            )
            name = raw_name.split(b"\0", 1)[0].decode("latin-1")
            self.dir_entries.append(Dentry(name, file_type, inode))

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "FileSystem":
        """Load an image from a file on disk."""
        with open(path, "rb") as handle:
            return cls(handle.read())

    def read_dentry_by_name(self, fname: NameLike) -> Dentry:
        """Find the directory entry whose name matches ``fname``."""
        target = _name_bytes(fname).split(b"\0", 1)[0]
        if len(target) > MAX_FILE_NAME_LENGTH:
            raise FileSystemError(f"file name too long: {target!r}")
        for dentry in self.dir_entries:
            if strncmp(target, dentry.name.encode("latin-1"), MAX_FILE_NAME_LENGTH) == 0:
                return dentry
        raise FileSystemError(f"no such file: {target!r}")

    def read_dentry_by_index(self, index: int) -> Dentry:
        """Return the directory entry at ``index``."""
        if not 0 <= index < self.num_dir_entries:
            raise FileSystemError(f"invalid directory index: {index}")
        return self.dir_entries[index]

    def _check_inode(self, inode: int) -> None:
        if not 0 <= inode < self.num_inodes:
            raise FileSystemError(f"invalid inode: {inode}")

    def inode_length(self, inode: int) -> int:
        """Length in bytes recorded in an inode."""
        self._check_inode(inode)
        return struct.unpack_from("<I", self.image, (inode + 1) * BLOCK_SIZE)[0]

    def _data_block_numbers(self, inode: int) -> tuple[int, ...]:
        return struct.unpack_from(
            f"<{NUM_DATA_BLOCKS}I", self.image, (inode + 1) * BLOCK_SIZE + 4
        )

    def read_data(self, inode: int, offset: int, length: int) -> bytes:
        """Read ``length`` bytes of an inode's data starting at ``offset``.

        The inode's length is not consulted; reading stops only when
        ``length`` bytes are gathered or the block list runs out.
        """
        self._check_inode(inode)
        if offset < 0 or length < 0:
            raise ValueError("offset and length must not be negative")
        if length == 0:
            return b""
        out = bytearray()
        for block in self._data_block_numbers(inode):
            if block >= self.num_data_blocks:
                raise FileSystemError(f"invalid data block: {block}")
            if offset >= BLOCK_SIZE:
                offset -= BLOCK_SIZE
                continue
            start = (self.num_inodes + block + 1) * BLOCK_SIZE + offset
            available = BLOCK_SIZE - offset
            offset = 0
            take = min(length - len(out), available)
            if start + take > len(self.image):
                raise FileSystemError(f"data block {block} lies outside the image")
            out += self.image[start : start + take]
            if len(out) == length:
                break
        return bytes(out)

    def open_file(self, fname: NameLike) -> "OpenFile":
        """Open a file by name for reading."""
        return OpenFile(self, self.read_dentry_by_name(fname).inode)

    def open_directory(self, fname: NameLike) -> "OpenDirectory":
        """Open the directory for listing; the name must exist."""
        self.read_dentry_by_name(fname)
        return OpenDirectory(self)

    def check_file_type(self, fname: NameLike, file_type: int) -> bool:
        """True if ``fname`` exists and has the given type."""
        try:
            dentry = self.read_dentry_by_name(fname)
        except FileSystemError:
            return False
        return dentry.file_type == file_type

    def _read_prefix(self, inode: int, nbytes: int) -> bytes:
        return self.read_data(inode, 0, min(self.inode_length(inode), nbytes))

    def check_program_image(self, inode: int) -> bool:
        """True if the inode's data starts with the executable magic number."""
        try:
            header = self._read_prefix(inode, len(ELF_MAGIC))
        except FileSystemError:
            return False
        return header == ELF_MAGIC

    def load_program_image(self, inode: int) -> bytes:
        """The whole contents of an inode."""
        return self._read_prefix(inode, self.inode_length(inode))

    def find_program_entry(self, inode: int) -> int:
        """Entry point address stored at byte 24 of an executable header."""
        header = self._read_prefix(inode, ENTRY_POINT_OFFSET + 4)
        if len(header) < ENTRY_POINT_OFFSET + 4:
            raise FileSystemError("executable header is too short")
        return struct.unpack_from("<I", header, ENTRY_POINT_OFFSET)[0]

    def describe_dentry(self, dentry: Dentry) -> str:
        """Type and size line that follows a file name in a listing."""
        return ", " + kprintf_format(
            "file_type: %d, file_size: %d\n",
            dentry.file_type,
            self.inode_length(dentry.inode),
        )


class OpenFile:
    """A regular file opened for reading, with its own position."""

    def __init__(self, fs: FileSystem, inode: int) -> None:
        fs._check_inode(inode)
        self.fs = fs
        self.inode = inode
        self.file_pos = 0

    def read(self, nbytes: int) -> bytes:
        """Read up to ``nbytes`` from the current position and advance it."""
        if nbytes < 0:
            raise ValueError("nbytes must not be negative")
        length = self.fs.inode_length(self.inode)
        if self.file_pos >= length:
            return b""
        count = min(length - self.file_pos, nbytes)
        data = self.fs.read_data(self.inode, self.file_pos, count)
        self.file_pos += len(data)
        return data

    def read_nopos(self, nbytes: int) -> bytes:
        """Read up to ``nbytes`` from the start, leaving the position alone."""
        if nbytes < 0:
            raise ValueError("nbytes must not be negative")
        return self.fs._read_prefix(self.inode, nbytes)

    def write(self, data: bytes) -> int:
        """Refuse the write: the file system is read-only."""
        self.fs._check_inode(self.inode)
        size = len(data)
        raise FileSystemError(
            f"file system is read-only: {size} bytes not written to inode {self.inode}"
        )


class OpenDirectory:
    """The directory opened for listing, one name per read."""

    def __init__(self, fs: FileSystem) -> None:
        self.fs = fs
        self.file_pos = 0

    def read(self, nbytes: int) -> bytes:
        """Next file name, at most ``nbytes`` long; empty once all are read."""
        if nbytes < 0:
            raise ValueError("nbytes must not be negative")
        if self.file_pos >= self.fs.num_dir_entries:
            return b""
        dentry = self.fs.read_dentry_by_index(self.file_pos)
        self.file_pos += 1
        name = dentry.name.encode("latin-1")
        size = min(len(name), MAX_FILE_NAME_LENGTH, nbytes)
        return strncpy(name, nbytes)[:size]

    def write(self, data: bytes) -> int:
        """Refuse the write: the file system is read-only."""
        size = len(data)
        raise FileSystemError(
            f"file system is read-only: {size} bytes not written to the directory"
        )