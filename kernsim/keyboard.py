"""Keyboard input: scancode decoding, modifier state, line buffer and command history."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from kernsim.console import TERMINAL_COUNT, Console

KB_DATA_PORT = 0x60
KB_COMMAND_PORT = 0x64
KB_ACK = 0xFA
KB_RESEND = 0xFE
KB_SCANCODE = 0xF0
SCAN_MODE = 0x01

ENTER = 0x1C
BACKSPACE = 0x0E
TAB = 0x0F
CAPS_LOCK = 0x3A

L_SHIFT = 0x2A
R_SHIFT = 0x36
CTRL = 0x1D
ALT = 0x38
F1 = 0x3B
F2 = 0x3C
F3 = 0x3D
UP = 0x48
DOWN = 0x50

BUF_SIZE = 128
SAVED_COMMANDS_SIZE = 32

RELEASE_BIT = 1 << 7

CharLike = Union[str, int]


@dataclass(frozen=True)
class KeyMap:
    """A printable key: its scancode, plain and shifted characters, and state."""

    scancode: int
    unshifted: str
    shifted: str
    state: int = 0


def _keys(rows: str, codes: list[int]) -> tuple[KeyMap, ...]:
    pairs = rows.split()
    return tuple(KeyMap(code, pair[0], pair[1]) for code, pair in zip(codes, pairs))


KEY_LETTERS: tuple[KeyMap, ...] = _keys(
    "qQ wW eE rR tT yY uU iI oO pP aA sS dD fF gG hH jJ kK lL zZ xX cC vV bB nN mM",
    [0x10, 0x11, 0x12, 0x13, 0x14, 0x15, 0x16, 0x17, 0x18, 0x19,
     0x1E, 0x1F, 0x20, 0x21, 0x22, 0x23, 0x24, 0x25, 0x26,
     0x2C, 0x2D, 0x2E, 0x2F, 0x30, 0x31, 0x32],
)

KEY_SYMBOLS: tuple[KeyMap, ...] = (
    KeyMap(0x02, "1", "!"),
    KeyMap(0x03, "2", "@"),
    KeyMap(0x04, "3", "#"),
    KeyMap(0x05, "4", "$"),
    KeyMap(0x06, "5", "%"),
    KeyMap(0x07, "6", "^"),
    KeyMap(0x08, "7", "&"),
    KeyMap(0x09, "8", "*"),
    KeyMap(0x0A, "9", "("),
    KeyMap(0x0B, "0", ")"),
    KeyMap(0x0C, "-", "_"),
    KeyMap(0x0D, "=", "+"),
    KeyMap(0x1A, "[", "{"),
    KeyMap(0x1B, "]", "}"),
    KeyMap(0x27, ";", ":"),
    KeyMap(0x28, "'", '"'),
    KeyMap(0x29, "`", "~"),
    KeyMap(0x2B, "\\", "|"),
    KeyMap(0x33, ",", "<"),
    KeyMap(0x34, ".", ">"),
    KeyMap(0x35, "/", "?"),
    KeyMap(0x39, " ", " "),
    KeyMap(ENTER, "\n", "\n"),
    KeyMap(BACKSPACE, "\b", "\b"),
    KeyMap(TAB, "\t", "\t"),
)

STATE_KEYS: tuple[int, ...] = (
    L_SHIFT, R_SHIFT, CTRL, CAPS_LOCK, ALT, F1, F2, F3, UP, DOWN,
)


def _code(c: CharLike) -> int:
    if isinstance(c, int):
        if not 0 <= c <= 0xFF:
            raise ValueError(f"character code out of range: {c}")
        return c
    if len(c) != 1 or ord(c) > 0xFF:
        raise ValueError(f"expected a single 8-bit character: {c!r}")
    return ord(c)


@dataclass
class _SavedCommand:
    command: bytearray = field(default_factory=lambda: bytearray(BUF_SIZE))
    history: bool = False


@dataclass
class _TerminalInput:
    keyboard_buf: bytearray = field(default_factory=lambda: bytearray(BUF_SIZE))
    buf_idx: int = 0
    enter_flag: bool = False
    saved_commands: list = field(
        default_factory=lambda: [_SavedCommand() for _ in range(SAVED_COMMANDS_SIZE)]
    )


class Keyboard:
    """Turns scancodes into characters and edits the shown terminal's line buffer.

    Each terminal has its own buffer and command history in ``inputs``;
    the one used is the console's shown terminal. History positions live
    on the console so that switching terminals carries them along.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console if console is not None else Console()
        self.key_state: dict[int, int] = {code: 0 for code in STATE_KEYS}
        self.inputs = [_TerminalInput() for _ in range(TERMINAL_COUNT)]

    @property
    def _input(self) -> _TerminalInput:
        return self.inputs[self.console.shown]

    def update_state_keys(self, scancode: int, data: int) -> None:
        """Track presses and releases of modifier keys; caps lock toggles on press."""
        if scancode not in self.key_state:
            return
        if scancode == CAPS_LOCK:
            if not data & RELEASE_BIT:
                self.key_state[scancode] ^= 1
            return
        self.key_state[scancode] = 0 if data & RELEASE_BIT else 1

    def check_keys(self, scancode: int, data: int) -> Optional[KeyMap]:
        """The printable key for ``scancode`` with its state set, or None."""
        found = next(
            (key for key in KEY_LETTERS + KEY_SYMBOLS if key.scancode == scancode),
            None,
        )
        if found is None:
            return None
        released = bool(data & RELEASE_BIT) and scancode != CAPS_LOCK
        return replace(found, state=0 if released else 1)

    def check_states(self, key: KeyMap) -> str:
        """Pick the plain or shifted character according to shift and caps lock."""
        is_letter = "a" <= key.unshifted <= "z"
        shift = self.key_state[L_SHIFT] or self.key_state[R_SHIFT]
        caps = self.key_state[CAPS_LOCK]
        if shift:
            if caps:
                return key.unshifted if is_letter else key.shifted
            return key.shifted
        if caps:
            return key.shifted if is_letter else key.unshifted
        return key.unshifted

    def backspace_pressed(self) -> None:
        """Drop the last buffered character; a tab takes its padding with it."""
        inp = self._input
        buf_idx = inp.buf_idx
        if not buf_idx:
            return
        buf_idx -= 1
        if inp.keyboard_buf[buf_idx] == ord("\t"):
            for _ in range(3):
                self.console.putc("\b")
                inp.keyboard_buf[buf_idx] = 0
                buf_idx -= 1
        else:
            inp.keyboard_buf[buf_idx] = 0
        inp.buf_idx = buf_idx

    def add_to_buffer(self, c: CharLike, key: KeyMap) -> None:
        """Add a typed character to the buffer and echo it."""
        inp = self._input
        buf_idx = inp.buf_idx
        if key.scancode == TAB:
            if buf_idx + 4 < BUF_SIZE - 1:
                for _ in range(3):
                    inp.keyboard_buf[buf_idx] = ord(" ")
                    buf_idx += 1
                    self.console.putc(" ")
                inp.keyboard_buf[buf_idx] = ord("\t")
                buf_idx += 1
                self.console.putc(" ")
        elif key.scancode == BACKSPACE:
            self.console.putc("\b")
        elif key.scancode == ENTER:
            if not inp.enter_flag:
                if buf_idx > 0:
                    self._save_command(inp)
                inp.keyboard_buf[buf_idx] = ord("\n")
                buf_idx += 1
                inp.enter_flag = True
                self.console.putc("\n")
        else:
            if buf_idx >= BUF_SIZE:
                raise IndexError("keyboard buffer is full")
            code = _code(c)
            inp.keyboard_buf[buf_idx] = code
            buf_idx += 1
            self.console.putc(code)
        inp.buf_idx = buf_idx

    def _save_command(self, inp: _TerminalInput) -> None:
        con = self.console
        saved = inp.saved_commands
        top = con.top_history_idx
        saved[top].command[:] = inp.keyboard_buf
        saved[con.curr_history_idx].history = False
        saved[top].history = True
        top += 1
        if top >= SAVED_COMMANDS_SIZE:
            top = 0
        con.top_history_idx = top
        con.curr_history_idx = top

    def _add_history_char(self, code: int) -> None:
        inp = self._input
        inp.keyboard_buf[inp.buf_idx] = code
        inp.buf_idx += 1
        self.console.putc(code)

    def check_buffer_overflow(self, key: KeyMap) -> bool:
        """True when the buffer is full; Enter still ends the line then."""
        inp = self._input
        if inp.buf_idx < BUF_SIZE - 1:
            return False
        if key.scancode == ENTER:
            inp.keyboard_buf[BUF_SIZE - 1] = ord("\n")
            self.console.putc("\n")
            inp.enter_flag = True
        return True

    def _find_older(self, saved: list, idx: int) -> Optional[int]:
        if idx == 0:
            idx = SAVED_COMMANDS_SIZE
        tries = 0
        while True:
            idx -= 1
            if saved[idx].history:
                return idx
            tries += 1
            if tries > SAVED_COMMANDS_SIZE:
                return None
            if idx == 0:
                idx = SAVED_COMMANDS_SIZE

    def _find_newer(self, saved: list, idx: int, top: int) -> Optional[int]:
        if idx == SAVED_COMMANDS_SIZE - 1:
            idx = -1
        tries = 0
        while True:
            idx += 1
            if saved[idx].history:
                return idx
            if idx == SAVED_COMMANDS_SIZE - 1:
                idx = -1
            if idx == top:
                return None
            tries += 1
            if tries > SAVED_COMMANDS_SIZE:
                return None

    def type_command(self, up: bool) -> None:
        """Replace the line with the previous (up) or next saved command."""
        con = self.console
        inp = self._input
        saved = inp.saved_commands
        saved[con.curr_history_idx].command[:] = inp.keyboard_buf

        if up:
            self.clear_buffer_for_history()
            found = self._find_older(saved, con.curr_history_idx)
        elif con.curr_history_idx != con.top_history_idx:
            self.clear_buffer_for_history()
            found = self._find_newer(saved, con.curr_history_idx, con.top_history_idx)
        else:
            return
        if found is None:
            return
        con.curr_history_idx = found
        for code in saved[found].command:
            if code == 0:
                break
            self._add_history_char(code)

    def clear_buffer_for_history(self) -> None:
        """Erase the buffered line from buffer and screen."""
        inp = self._input
        for i, code in enumerate(inp.keyboard_buf):
            if code:
                inp.keyboard_buf[i] = 0
                self.console.putc("\b")
        inp.buf_idx = 0
        self.console.terminals[self.console.shown].terminal_x = 0