"""Model of the cascaded 8259 programmable interrupt controllers."""

from __future__ import annotations

from typing import Callable, Optional

MASTER_8259_COMMAND_PORT = 0x20
MASTER_8259_DATA_PORT = 0x21
SLAVE_8259_COMMAND_PORT = 0xA0
SLAVE_8259_DATA_PORT = 0xA1

ICW1 = 0x11
ICW2_MASTER = 0x20
ICW2_SLAVE = 0x28
ICW3_MASTER = 0x04
ICW3_SLAVE = 0x02
ICW4 = 0x01

EOI = 0x60

PortWriter = Callable[[int, int], None]


class Pic:
    """Master and slave PIC pair driven through a port writer.

    Every byte sent is recorded in ``writes`` as ``(data, port)`` and
    passed on to ``port_writer`` if one is given.
    """

    def __init__(self, port_writer: Optional[PortWriter] = None) -> None:
        self.port_writer = port_writer
        self.writes: list[tuple[int, int]] = []
        self.master_mask = 0
        self.slave_mask = 0

    def _outb(self, data: int, port: int) -> None:
        data &= 0xFF
        self.writes.append((data, port))
        if self.port_writer is not None:
            self.port_writer(data, port)

    @staticmethod
    def _check_irq(irq_num: int) -> None:
        if not 0 <= irq_num < 16:
            raise ValueError(f"IRQ number out of range: {irq_num}")

    def init(self) -> None:
        """Send the initialisation words and mask everything except the cascade."""
        self._outb(ICW1, MASTER_8259_COMMAND_PORT)
        self._outb(ICW2_MASTER, MASTER_8259_DATA_PORT)
        self._outb(ICW3_MASTER, MASTER_8259_DATA_PORT)
        self._outb(ICW4, MASTER_8259_DATA_PORT)

        self._outb(ICW1, SLAVE_8259_COMMAND_PORT)
        self._outb(ICW2_SLAVE, SLAVE_8259_DATA_PORT)
        self._outb(ICW3_SLAVE, SLAVE_8259_DATA_PORT)
        self._outb(ICW4, SLAVE_8259_DATA_PORT)

        self.master_mask = 0xFB
        self.slave_mask = 0xFF
        self._outb(self.master_mask, MASTER_8259_DATA_PORT)
        self._outb(self.slave_mask, SLAVE_8259_DATA_PORT)

    def enable_irq(self, irq_num: int) -> None:
        """Unmask ``irq_num`` and remember the new mask."""
        self._check_irq(irq_num)
        if irq_num >= 8:
            mask = ~(1 << (irq_num - 8)) & 0xFF
            self._outb(self.slave_mask & mask, SLAVE_8259_DATA_PORT)
            self.slave_mask &= mask
        else:
            mask = ~(1 << irq_num) & 0xFF
            self._outb(self.master_mask & mask, MASTER_8259_DATA_PORT)
            self.master_mask &= mask

    def disable_irq(self, irq_num: int) -> None:
        """Mask ``irq_num`` on the controller; the stored mask is left as is."""
        self._check_irq(irq_num)
        if irq_num >= 8:
            self._outb(self.slave_mask | (1 << (irq_num - 8)), SLAVE_8259_DATA_PORT)
        else:
            self._outb(self.master_mask | (1 << irq_num), MASTER_8259_DATA_PORT)

    def send_eoi(self, irq_num: int) -> None:
        """Signal end of interrupt, to both controllers for slave IRQs."""
        self._check_irq(irq_num)
        if irq_num >= 8:
            self._outb(0x02 | EOI, MASTER_8259_COMMAND_PORT)
            self._outb((irq_num - 8) | EOI, SLAVE_8259_COMMAND_PORT)
        else:
            self._outb(irq_num | EOI, MASTER_8259_COMMAND_PORT)