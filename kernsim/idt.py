"""Interrupt descriptor table layout and exception reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from kernsim.i8259 import ICW2_MASTER, ICW2_SLAVE
from kernsim.textfmt import kprintf_format

NUM_VEC = 256
SYS_CALL_IDT_NUM = 0x80
HALT_EXCEPTION_STATUS = 256
PAGE_FAULT_VECTOR = 14
RESERVED_VECTOR = 15
NUM_EXCEPTIONS = 20

KERNEL_CS = 0x0010

PIT_IDT_NUM = ICW2_MASTER + 0
KEYBOARD_IDT_NUM = ICW2_MASTER + 1
RTC_IDT_NUM = ICW2_SLAVE + 0

EXCEPTION_NAMES: tuple[str, ...] = (
    "Divide Error Exception",
    "Debug Exception",
    "NMI Interrupt",
    "Breakpoint Exception",
    "Overflow Exception",
    "BOUND Range Exceeded Exception",
    "Invalid Opcode Exception",
    "Device Not Available Exception",
    "Double Fault Exception",
    "Coprocessor Segment Overrun",
    "Invalid TSS Exception",
    "Segment Not Present",
    "Stack Fault Exception",
    "General Protection Exception",
    "Page-Fault Exception",
    "RESERVED",
    "x87 FPU Floating-Point Error",
    "Alignment Check Exception",
    "Machine-Check Exception",
    "SIMD Floating-Point Exception",
)

REGISTER_ORDER: tuple[str, ...] = (
    "edi", "esi", "ebp", "esp", "ebx", "edx", "ecx", "eax", "eflags",
)


def exception_name(vector: int) -> str:
    """Name of the processor exception with the given vector."""
    if not 0 <= vector < len(EXCEPTION_NAMES):
        raise ValueError(f"no exception with vector {vector}")
    return EXCEPTION_NAMES[vector]


def format_exception(vector: int) -> str:
    """Message printed when an exception without an error code is raised."""
    return kprintf_format("%s raised! \n", exception_name(vector))


def format_error_exception(
    vector: int, registers: Mapping[str, int], error_code: int, cr2: int = 0
) -> str:
    """Message printed for an exception with an error code and saved registers.

    ``registers`` must give edi, esi, ebp, esp, ebx, edx, ecx, eax and
    eflags. CR2 is reported only for page faults.
    """
    missing = [name for name in REGISTER_ORDER if name not in registers]
    if missing:
        raise KeyError(f"missing registers: {', '.join(missing)}")
    lines = [format_exception(vector)]
    lines.extend(
        kprintf_format(f"{name}: %x\n", registers[name]) for name in REGISTER_ORDER
    )
    lines.append(kprintf_format("Error code: %x\n", error_code))
    if vector == PAGE_FAULT_VECTOR:
        lines.append(kprintf_format("CR2 Reg: %d\n", cr2))
    return "".join(lines)


@dataclass
class IdtEntry:
    """One gate descriptor; ``handler`` names the routine it enters."""

    seg_selector: int = 0
    reserved4: int = 0
    reserved3: int = 0
    reserved2: int = 0
    reserved1: int = 0
    size: int = 0
    reserved0: int = 0
    dpl: int = 0
    present: int = 0
    handler: Optional[str] = None

    def _set_gate(self, trap: bool, dpl: int, handler: str) -> None:
        self.seg_selector = KERNEL_CS
        self.present = 1
        self.size = 1
        self.reserved1 = 1
        self.reserved2 = 1
        self.reserved3 = 1 if trap else 0
        self.dpl = dpl
        self.handler = handler


class Idt:
    """The 256-entry table with exception, device and system call gates filled in."""

    def __init__(self) -> None:
        self.entries = [IdtEntry() for _ in range(NUM_VEC)]
        for vector in range(NUM_EXCEPTIONS):
            if vector != RESERVED_VECTOR:
                self.entries[vector]._set_gate(True, 0, f"excep{vector}")
        self.entries[RTC_IDT_NUM]._set_gate(False, 0, "rtc_handler_link")
        self.entries[KEYBOARD_IDT_NUM]._set_gate(False, 0, "keyboard_handler_link")
        self.entries[PIT_IDT_NUM]._set_gate(False, 0, "pit_handler_link")
        self.entries[SYS_CALL_IDT_NUM]._set_gate(True, 3, "sys_call_handler_link")
        self.loaded = True

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, vector: int) -> IdtEntry:
        return self.entries[vector]