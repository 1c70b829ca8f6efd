"""Models of a small teaching kernel: filesystem image, console, keyboard, PIC, paging and IDT."""

__version__ = "0.1.0"

__all__ = [
    "console",
    "emulate",
    "filesystem",
    "fish",
    "i8259",
    "idt",
    "keyboard",
    "paging",
    "support",
    "textfmt",
]