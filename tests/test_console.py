import pytest

from kernsim.console import ATTRIB, Console


def test_puts_writes_characters_on_first_row():
    con = Console(3, 4)
    assert con.puts("hi") == 2
    assert con.row_text(0) == "hi"
    assert con.screen_x == 2


def test_newline_moves_to_next_row():
    con = Console(3, 4)
    con.puts("a\nb")
    assert con.row_text(0) == "a"
    assert con.row_text(1) == "b"
    assert con.screen_y == 1


def test_long_line_wraps():
    con = Console(3, 4)
    con.puts("abcde")
    assert con.row_text(0) == "abcd"
    assert con.row_text(1) == "e"


def test_scrolls_when_bottom_passed():
    con = Console(3, 4)
    con.puts("a\nb\nc\nd")
    assert con.text() == "b\nc\nd"
    assert con.screen_y == 2


def test_backspace_at_line_start_is_ignored():
    con = Console(3, 4)
    con.putc("\b")
    assert con.screen_x == 0
    assert con.terminal_x == 0


def test_backspace_removes_last_character():
    con = Console(3, 4)
    con.puts("ab\b")
    assert con.row_text(0) == "a"
    assert con.screen_x == 1


def test_putc_accepts_code():
    con = Console(3, 4)
    con.putc(ord("Z"))
    assert con.row_text(0) == "Z"


def test_putc_rejects_wide_character():
    con = Console(3, 4)
    with pytest.raises(ValueError):
        con.putc("\u20ac")


def test_attribute_written_with_character():
    con = Console(3, 4)
    con.putc("x")
    assert con.video_mem[0] == ord("x")
    assert con.video_mem[3] == ATTRIB


def test_clear_blanks_and_resets_position():
    con = Console(3, 4)
    con.puts("abc\nde")
    con.clear()
    assert con.text() == "\n\n"
    assert all(b == ATTRIB for b in con.video_mem[1::2])
    assert (con.screen_x, con.screen_y) == (0, 0)


def test_printf_returns_format_length():
    con = Console(3, 20)
    fmt = "v=%d"
    assert con.printf(fmt, -5) == len(fmt)
    assert con.row_text(0) == "v=-5"


def test_row_out_of_range():
    con = Console(3, 4)
    with pytest.raises(IndexError):
        con.row_text(3)


def test_cursor_follows_only_when_enabled():
    con = Console(3, 4)
    con.puts("ab")
    assert con.cursor == (0, 0)
    con.switch_screen(0, 0, True)
    assert con.cursor_enabled
    assert con.cursor == (2, 0)
    con.putc("c")
    assert con.cursor == (3, 0)


def test_switch_to_hidden_terminal_uses_backing_memory():
    con = Console(3, 4)
    con.puts("ab")
    con.switch_screen(0, 1, False)
    assert not con.cursor_enabled
    assert (con.screen_x, con.screen_y) == (0, 0)
    con.puts("zz")
    assert con.row_text(0) == "zz"
    con.switch_screen(1, 0, True)
    assert con.row_text(0) == "ab"
    assert (con.screen_x, con.screen_y) == (2, 0)
    assert con.terminals[1].screen_x == 2


def test_switch_rejects_unknown_terminal():
    con = Console(3, 4)
    with pytest.raises(ValueError):
        con.switch_screen(0, 5, False)