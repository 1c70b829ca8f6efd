import struct

import pytest

from kernsim.filesystem import (
    Dentry,
    FileSystem,
    FileSystemError,
    OpenDirectory,
    OpenFile,
    format_file_name,
)

BLOCK = 4096


def build_image(entries):
    """entries: list of (name, file_type, content); each gets its own inode."""
    inodes = []
    data_blocks = []
    for _, _, content in entries:
        numbers = []
        for start in range(0, len(content), BLOCK):
            numbers.append(len(data_blocks))
            data_blocks.append(content[start : start + BLOCK].ljust(BLOCK, b"\0"))
        inodes.append((len(content), numbers))
    boot = bytearray(BLOCK)
    struct.pack_into("<3I", boot, 0, len(entries), len(inodes), len(data_blocks))
    for index, (name, file_type, _) in enumerate(entries):
        offset = 64 * (index + 1)
        raw = name.encode("latin-1")
        boot[offset : offset + len(raw)] = raw
        struct.pack_into("<2I", boot, offset + 32, file_type, index)
    image = bytearray(boot)
    for length, numbers in inodes:
        block = bytearray(BLOCK)
        struct.pack_into("<I", block, 0, length)
        for i, number in enumerate(numbers):
            struct.pack_into("<I", block, 4 + 4 * i, number)
        image += block
    for block in data_blocks:
        image += block
    return bytes(image)


BIG = bytes(range(256)) * 20
ELF = b"\x7fELF" + bytes(20) + struct.pack("<I", 0x08048000) + b"program body"
LONG_NAME = "verylargetextwithverylongname.tx"


@pytest.fixture
def fs():
    return FileSystem(
        build_image(
            [
                (".", 1, b""),
                ("frame0.txt", 2, b"hello fish\n"),
                ("big", 2, BIG),
                ("shell", 2, ELF),
                (LONG_NAME, 2, b"x"),
                ("rtc", 0, b""),
            ]
        )
    )


def test_dentry_by_name(fs):
    assert fs.read_dentry_by_name("frame0.txt") == Dentry("frame0.txt", 2, 1)
    assert fs.read_dentry_by_name(b"rtc").file_type == 0


def test_dentry_full_length_name(fs):
    assert fs.read_dentry_by_name(LONG_NAME).inode == 4


def test_dentry_missing_and_too_long(fs):
    with pytest.raises(FileSystemError):
        fs.read_dentry_by_name("nothere")
    with pytest.raises(FileSystemError):
        fs.read_dentry_by_name(LONG_NAME + "t")


def test_dentry_by_index(fs):
    assert fs.read_dentry_by_index(2).name == "big"
    with pytest.raises(FileSystemError):
        fs.read_dentry_by_index(6)


def test_read_data_across_blocks(fs):
    assert fs.read_data(2, 4090, 20) == BIG[4090:4110]
    assert fs.read_data(2, 0, len(BIG)) == BIG


def test_read_data_edge_cases(fs):
    assert fs.read_data(1, 0, 0) == b""
    with pytest.raises(FileSystemError):
        fs.read_data(99, 0, 1)


def test_inode_length(fs):
    assert fs.inode_length(2) == len(BIG)


def test_open_file_sequential_reads(fs):
    handle = fs.open_file("big")
    assert isinstance(handle, OpenFile)
    chunks = []
    while True:
        chunk = handle.read(1000)
        if not chunk:
            break
        chunks.append(chunk)
    assert b"".join(chunks) == BIG
    assert handle.read(10) == b""


def test_read_nopos_starts_at_zero(fs):
    handle = fs.open_file("frame0.txt")
    handle.read(5)
    assert handle.read_nopos(5) == b"hello"
    assert handle.read(100) == b" fish\n"


def test_writes_fail(fs):
    with pytest.raises(FileSystemError):
        fs.open_file("frame0.txt").write(b"data")
    with pytest.raises(FileSystemError):
        fs.open_directory(".").write(b"data")


def test_open_missing_file(fs):
    with pytest.raises(FileSystemError):
        fs.open_file("missing")


def test_directory_listing(fs):
    directory = fs.open_directory(".")
    assert isinstance(directory, OpenDirectory)
    names = []
    while True:
        name = directory.read(32)
        if not name:
            break
        names.append(name.decode())
    assert names == [d.name for d in fs.dir_entries]
    assert directory.read(32) == b""


def test_directory_read_truncated(fs):
    directory = fs.open_directory(".")
    directory.read(32)
    assert directory.read(3) == b"fra"


def test_check_file_type(fs):
    assert fs.check_file_type("rtc", 0)
    assert not fs.check_file_type("rtc", 2)
    assert not fs.check_file_type("missing", 2)


def test_program_image(fs):
    assert fs.check_program_image(3)
    assert not fs.check_program_image(1)
    assert fs.load_program_image(3) == ELF
    assert fs.find_program_entry(3) == 0x08048000


def test_program_entry_short_header(fs):
    with pytest.raises(FileSystemError):
        fs.find_program_entry(1)


def test_format_file_name():
    line = format_file_name("frame0.txt")
    assert line.startswith("file_name: ")
    assert line.endswith(" frame0.txt")
    assert len(line) == len("file_name: ") + 32
    long_line = format_file_name("a" * 40)
    assert long_line == "file_name: " + "a" * 32


def test_describe_dentry(fs):
    dentry = fs.read_dentry_by_name("big")
    assert fs.describe_dentry(dentry) == f", file_type: 2, file_size: {len(BIG)}\n"


def test_bad_data_block_raises():
    image = bytearray(build_image([("f", 2, b"abc")]))
    struct.pack_into("<I", image, BLOCK + 4, 50)
    fs = FileSystem(image)
    with pytest.raises(FileSystemError):
        fs.read_data(0, 0, 3)


def test_image_too_small():
    with pytest.raises(FileSystemError):
        FileSystem(b"\0" * 100)


def test_from_file(tmp_path):
    path = tmp_path / "fs.img"
    path.write_bytes(build_image([("a.txt", 2, b"contents")]))
    fs = FileSystem.from_file(path)
    assert fs.open_file("a.txt").read(100) == b"contents"