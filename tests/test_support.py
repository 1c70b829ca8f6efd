import io

import pytest

from kernsim.support import SyscallNumber, fdputs, strcmp, strlen, strncmp


def test_strlen_stops_at_nul():
    assert strlen(b"frame0.txt\0junk") == len(b"frame0.txt")


def test_strlen_without_nul_is_full_length():
    assert strlen("rtc") == len("rtc")
    assert strlen(b"") == 0


def test_strcmp_equal_strings():
    assert strcmp(b"frame0.txt", "frame0.txt") == 0


@pytest.mark.parametrize("a,b", [(b"abc", b"abd"), (b"ab", b"abc"), (b"A", b"a")])
def test_strcmp_sign_is_antisymmetric(a, b):
    assert strcmp(a, b) < 0
    assert strcmp(b, a) > 0
    assert strcmp(a, b) == -strcmp(b, a)


def test_strcmp_is_unsigned():
    assert strcmp(b"\xff", b"\x01") > 0


def test_strncmp_zero_length_is_equal():
    assert strncmp(b"abc", b"xyz", 0) == 0


def test_strncmp_prefix_match():
    assert strncmp(b"frame0.txt", b"frame1.txt", 5) == 0
    assert strncmp(b"frame0.txt", b"frame1.txt", 6) < 0


def test_strncmp_agrees_with_strcmp_for_large_n():
    for a, b in [(b"abc", b"abd"), (b"x", b"x"), (b"long", b"lo")]:
        assert strncmp(a, b, 100) == strcmp(a, b)


def test_fdputs_bytes_stream():
    stream = io.BytesIO()
    written = fdputs(stream, b"hello\0world")
    assert stream.getvalue() == b"hello"
    assert written == len(b"hello")


def test_fdputs_text_stream():
    stream = io.StringIO()
    fdputs(stream, "shell")
    assert stream.getvalue() == "shell"


def test_syscall_numbers_follow_header_order():
    assert SyscallNumber(SyscallNumber.WRITE.value) is SyscallNumber.WRITE
    assert SyscallNumber.HALT < SyscallNumber.SIGRETURN
    assert [m.name for m in SyscallNumber][:3] == ["HALT", "EXECUTE", "READ"]