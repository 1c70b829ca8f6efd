"""Text-mode console: character cells, scrolling, cursor and terminal switching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from kernsim.textfmt import kprintf_format

ATTRIB = 0x0C
TERMINAL_COUNT = 3

CharLike = Union[str, int, bytes]


@dataclass
class TerminalContext:
    """Screen position and history indices saved for a terminal not in use."""

    screen_x: int = 0
    screen_y: int = 0
    terminal_x: int = 0
    curr_history_idx: int = 0
    top_history_idx: int = 0


def _char_code(c: CharLike) -> int:
    if isinstance(c, int):
        if not 0 <= c <= 0xFF:
            raise ValueError(f"character code out of range: {c}")
        return c
    if isinstance(c, (bytes, bytearray)):
        if len(c) != 1:
            raise ValueError("expected a single byte")
        return c[0]
    if len(c) != 1:
        raise ValueError("expected a single character")
    code = ord(c)
    if code > 0xFF:
        raise ValueError(f"character cannot be shown on the console: {c!r}")
    return code


class Console:
    """A grid of character/attribute cells written like VGA text memory.

    ``screen`` is the memory shown to the user; ``backing`` holds one
    off-screen buffer per terminal. ``video_mem`` is whichever buffer
    output currently goes to.
    """

    def __init__(self, rows: int = 25, cols: int = 80) -> None:
        if rows <= 0 or cols <= 0:
            raise ValueError("rows and cols must be positive")
        self.rows = rows
        self.cols = cols
        size = rows * cols * 2
        self.screen = bytearray(size)
        self.backing = [bytearray(size) for _ in range(TERMINAL_COUNT)]
        self.video_mem = self.screen
        self.screen_x = 0
        self.screen_y = 0
        self.terminal_x = 0
        self.cursor_enabled = False
        self.cursor = (0, 0)
        self.shown = 0
        self.terminals = [TerminalContext() for _ in range(TERMINAL_COUNT)]
        self.curr_history_idx = 0
        self.top_history_idx = 0

    def _cell(self, x: int, y: int) -> int:
        return (self.cols * y + x) << 1

    def update_cursor(self, x: int, y: int) -> None:
        """Move the hardware cursor, but only on the shown terminal."""
        if self.cursor_enabled:
            self.cursor = (x, y)

    def clear(self) -> None:
        """Blank every cell and put the position back at the top left."""
        for i in range(self.rows * self.cols):
            self.video_mem[i << 1] = ord(" ")
            self.video_mem[(i << 1) + 1] = ATTRIB
        self.screen_x = 0
        self.screen_y = 0
        self.update_cursor(self.screen_x, self.screen_y)

    def putc(self, c: CharLike) -> None:
        """Write one character, handling newline, backspace, wrap and scroll."""
        code = _char_code(c)
        if code in (0x0A, 0x0D):
            self.screen_y += 1
            self.screen_x = 0
            self.terminal_x = 0
            if self.screen_y == self.rows:
                self.scroll_up()
                self.screen_y -= 1
            self.update_cursor(self.screen_x, self.screen_y)
            return

        if code == 0x08:
            if self.terminal_x:
                self.screen_x -= 1
                self.terminal_x -= 1
                index = self._cell(self.screen_x, self.screen_y)
                if index >= 0:
                    self.video_mem[index] = 0
        else:
            self.video_mem[self._cell(self.screen_x, self.screen_y)] = code
            self.screen_x += 1
            self.terminal_x += 1

        if self.screen_x == self.cols:
            self.screen_y += 1
            self.screen_x = 0
            if self.screen_y == self.rows:
                self.scroll_up()
                self.screen_y -= 1
        elif self.screen_x < 0:
            self.screen_x = self.cols - 1
            self.screen_y -= 1

        attr_index = self._cell(self.screen_x, self.screen_y) + 1
        if 0 <= attr_index < len(self.video_mem):
            self.video_mem[attr_index] = ATTRIB
        self.screen_x %= self.cols
        self.screen_y = (self.screen_y + self.screen_x // self.cols) % self.rows
        self.update_cursor(self.screen_x, self.screen_y)

    def puts(self, s: Union[str, bytes]) -> int:
        """Write characters up to the first NUL; return how many were written."""
        if isinstance(s, (bytes, bytearray)):
            s = bytes(s).decode("latin-1")
        text = s.split("\0", 1)[0]
        for ch in text:
            self.putc(ch)
        return len(text)

    def printf(self, fmt: str, *args) -> int:
        """Format with the kernel printf rules and write the result.

        Returns the length of the format string, as the kernel does.
        """
        fmt = fmt.split("\0", 1)[0]
        self.puts(kprintf_format(fmt, *args))
        return len(fmt)

    def scroll_up(self) -> None:
        """Move every row up by one and blank the bottom row."""
        row_bytes = self.cols << 1
        self.video_mem[: (self.rows - 1) * row_bytes] = bytes(
            self.video_mem[row_bytes : self.rows * row_bytes]
        )
        start = (self.rows - 1) * row_bytes
        for i in range(self.cols):
            self.video_mem[start + (i << 1)] = 0
            self.video_mem[start + (i << 1) + 1] = ATTRIB

    def row_text(self, row: int) -> str:
        """Characters of one row of the current buffer, trailing blanks removed."""
        if not 0 <= row < self.rows:
            raise IndexError(f"row out of range: {row}")
        start = (self.cols * row) << 1
        chars = bytes(self.video_mem[start : start + (self.cols << 1) : 2])
        return chars.replace(b"\0", b" ").decode("latin-1").rstrip(" ")

    def text(self) -> str:
        """All rows of the current buffer joined by newlines."""
        return "\n".join(self.row_text(row) for row in range(self.rows))

    def switch_screen(self, old_term: int, curr_term: int, cursor: bool) -> None:
        """Save the state of ``old_term`` and take on that of ``curr_term``."""
        for term in (old_term, curr_term):
            if not 0 <= term < TERMINAL_COUNT:
                raise ValueError(f"no such terminal: {term}")
        old = self.terminals[old_term]
        new = self.terminals[curr_term]

        old.screen_x = self.screen_x
        old.screen_y = self.screen_y
        self.screen_x = new.screen_x
        self.screen_y = new.screen_y

        old.terminal_x = self.terminal_x
        self.terminal_x = new.terminal_x

        old.curr_history_idx = self.curr_history_idx
        self.curr_history_idx = new.curr_history_idx
        old.top_history_idx = self.top_history_idx
        self.top_history_idx = new.top_history_idx

        if self.shown == curr_term:
            self.cursor_enabled = True
            self.video_mem = self.screen
        else:
            self.cursor_enabled = False
            self.video_mem = self.backing[curr_term]

        if cursor:
            self.update_cursor(self.screen_x, self.screen_y)