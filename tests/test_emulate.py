import os
import stat

import pytest

from kernsim.emulate import DirectoryReader, execute, getargs, parse_command


def _script(directory, name, body):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def test_parse_command_single_word():
    assert parse_command("ls") == ["./ls"]


def test_parse_command_spaces_and_newline():
    assert parse_command("cat  frame0.txt   extra\nignored") == [
        "./cat",
        "frame0.txt",
        "extra",
    ]


def test_parse_command_too_long():
    with pytest.raises(ValueError):
        parse_command("a" * 1024)


def test_parse_command_longest_allowed():
    assert parse_command("a" * 1023) == ["./" + "a" * 1023]


def test_execute_returns_exit_status(tmp_path):
    _script(tmp_path, "prog", "exit 3")
    assert execute("prog", cwd=tmp_path) == 3


def test_execute_passes_arguments(tmp_path):
    _script(tmp_path, "count", "exit $#")
    assert execute("count one two", cwd=tmp_path) == 2


def test_execute_missing_program(tmp_path):
    assert execute("nothere", cwd=tmp_path) == -1


def test_execute_killed_by_other_signal(tmp_path):
    _script(tmp_path, "term", "kill -TERM $$")
    assert execute("term", cwd=tmp_path) == 256


def test_getargs_joins_with_spaces():
    assert getargs(["prog", "a", "bc"], 10) == "a bc"


def test_getargs_exact_fit_and_overflow():
    assert getargs(["prog", "a", "bc"], 5) == "a bc"
    with pytest.raises(ValueError):
        getargs(["prog", "a", "bc"], 4)


def test_getargs_no_arguments():
    assert getargs(["prog"], 1) == ""
    with pytest.raises(ValueError):
        getargs(["prog"], 0)


def test_directory_reader_lists_all_names(tmp_path):
    long_name = "n" * 40
    (tmp_path / "a.txt").write_text("x")
    (tmp_path / long_name).write_text("y")
    names = []
    with DirectoryReader(tmp_path) as reader:
        while True:
            chunk = reader.read(64)
            if not chunk:
                break
            assert len(chunk) == 32
            names.append(chunk.rstrip(b"\0").decode())
    assert sorted(names) == sorted([".", "..", "a.txt", long_name[:32]])


def test_directory_reader_truncates_to_nbytes(tmp_path):
    (tmp_path / "abcdef").write_text("x")
    reader = DirectoryReader(tmp_path)
    reads = [reader.read(3) for _ in range(3)]
    assert reads[2] == b"abc"
    assert reader.read(3) == b""


def test_directory_reader_closed_and_write(tmp_path):
    reader = DirectoryReader(tmp_path)
    with pytest.raises(OSError):
        reader.write(b"data")
    reader.close()
    with pytest.raises(ValueError):
        reader.read(32)