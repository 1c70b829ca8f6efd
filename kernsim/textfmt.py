"""Kernel text formatting: number conversion, printf and string helpers."""

from __future__ import annotations

from typing import Union

_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_U32 = 0xFFFFFFFF

StrLike = Union[str, bytes, bytearray, memoryview]


def _as_bytes(s: StrLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _to_int32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


def itoa(value: int, radix: int) -> str:
    """Render ``value`` (taken as an unsigned 32-bit number) in ``radix``."""
    if not 2 <= radix <= len(_DIGITS):
        raise ValueError(f"radix must be between 2 and {len(_DIGITS)}: {radix}")
    value &= _U32
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, radix)
        digits.append(_DIGITS[rem])
    return strrev("".join(digits))


def strrev(s: str) -> str:
    """Reverse the characters of ``s`` that come before any NUL."""
    return s.split("\0", 1)[0][::-1]


def ipow(base: int, exp: int) -> int:
    """Raise ``base`` to ``exp`` with 32-bit signed wrap-around.

    A zero exponent gives 1; a negative one leaves ``base`` unchanged.
    """
    if exp == 0:
        return 1
    result = _to_int32(base)
    for _ in range(exp - 1):
        result = _to_int32(result * base)
    return result


def kprintf_format(fmt: str, *args) -> str:
    """Format like the kernel printf.

    Supports ``%%``, ``%x``, ``%#x`` (eight zero-padded hex digits),
    ``%u``, ``%d``, ``%c`` and ``%s``. Unknown conversions print nothing.
    """
    out: list[str] = []
    remaining = iter(args)

    def next_arg():
        try:
            return next(remaining)
        except StopIteration:
            raise ValueError("not enough arguments for format string") from None

    fmt = fmt.split("\0", 1)[0]
    i = 0
    length = len(fmt)
    while i < length:
        ch = fmt[i]
        if ch != "%":
            out.append(ch)
            i += 1
            continue
        i += 1
        alternate = False
        while i < length and fmt[i] == "#":
            alternate = True
            i += 1
        if i >= length:
            break
        spec = fmt[i]
        if spec == "%":
            out.append("%")
        elif spec == "x":
            digits = itoa(int(next_arg()), 16)
            out.append(digits.rjust(8, "0") if alternate else digits)
        elif spec == "u":
            out.append(itoa(int(next_arg()), 10))
        elif spec == "d":
            value = _to_int32(int(next_arg()))
            if value < 0:
                out.append("-" + itoa(-value, 10))
            else:
                out.append(itoa(value, 10))
        elif spec == "c":
            arg = next_arg()
            code = ord(arg[0]) if isinstance(arg, str) else int(arg)
            out.append(chr(code & 0xFF))
        elif spec == "s":
            arg = next_arg()
            if isinstance(arg, (bytes, bytearray, memoryview)):
                arg = bytes(arg).decode("latin-1")
            out.append(str(arg).split("\0", 1)[0])
        i += 1
    return "".join(out)


def _signed_char(c: int) -> int:
    return c - 256 if c >= 128 else c


def strncmp(s1: StrLike, s2: StrLike, n: int) -> int:
    """Compare at most ``n`` characters as signed chars, stopping at NUL."""
    a, b = _as_bytes(s1), _as_bytes(s2)
    for i in range(max(n, 0)):
        ca = _signed_char(a[i]) if i < len(a) else 0
        cb = _signed_char(b[i]) if i < len(b) else 0
        if ca != cb or ca == 0:
            return ca - cb
    return 0


def strncpy(src: StrLike, n: int) -> bytes:
    """Return exactly ``n`` bytes: ``src`` up to its NUL, padded with NULs."""
    if n < 0:
        raise ValueError(f"length must not be negative: {n}")
    data = _as_bytes(src).split(b"\0", 1)[0][:n]
    return data.ljust(n, b"\0")