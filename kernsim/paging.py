"""Page directory and page table set-up, and the buddy allocator's block map."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from kernsim.console import TERMINAL_COUNT

PAGE_SIZE = 4096
NUM_PD = 1024
NUM_PT = 1024
BIG_PAGE_SIZE = PAGE_SIZE * NUM_PT

PAGE_ADDR_BITS = 20
BASE_ADDR_BITS = 12

VIDEO = 0xB8000

VMEM_PD = 0
KERNEL_PD = 1

SCREEN_VMEM_PT = VIDEO // PAGE_SIZE
TERM_VMEM_PT = 186

KERNEL_START = KERNEL_PD * BIG_PAGE_SIZE
KERNEL_END = (KERNEL_PD + 1) * BIG_PAGE_SIZE - 1
PROCESS_START = 2 * BIG_PAGE_SIZE

USR_PRGM_PD = 128 // 4
VIDMAP_PD = 34
VIDMAP_PT = 0
VIDMAP_ADDR = VIDMAP_PD * BIG_PAGE_SIZE

USR_PAGE = 0x08000000
USR_PRGM_START = 0x08048000
USR_PRGM_OFFSET = 0x00048000

MALLOC_PD_START = 40
MALLOC_PD_END = 50
MALLOC_PD_SIZE = MALLOC_PD_END - MALLOC_PD_START

MAX_ORDER = 10
MMAP_SIZE = 1024 + 512 + 256 + 128 + 64 + 32 + 16 + 8 + 4 + 2 + 1

_BASE_MASK = (1 << PAGE_ADDR_BITS) - 1


def _tree_left(i: int) -> int:
    return 2 * i + 1


def _tree_right(i: int) -> int:
    return 2 * i + 2


def _check_terminal(terminal: int) -> None:
    if not 0 <= terminal < TERMINAL_COUNT:
        raise ValueError(f"no such terminal: {terminal}")


def term_vmem_address(terminal: int) -> int:
    """Physical address of a terminal's off-screen video memory page."""
    _check_terminal(terminal)
    return (TERM_VMEM_PT + terminal) * PAGE_SIZE


@dataclass
class PageEntry:
    """A page directory or page table entry, one field per flag.

    ``size`` is the page-size bit of a directory entry (the attribute
    index bit of a table entry); ``dirty`` is bit 6. ``base_addr`` holds
    the 20-bit frame number and is truncated to that width on assignment.
    A directory entry that points at a page table keeps it in ``table``.
    """

    present: int = 0
    rw: int = 0
    user: int = 0
    write_through: int = 0
    cache: int = 0
    accessed: int = 0
    dirty: int = 0
    size: int = 0
    global_: int = 0
    avail: int = 0
    base_addr: int = 0
    table: Optional[list] = field(default=None, repr=False, compare=False)

    def __setattr__(self, name, value):
        if name == "base_addr":
            value &= _BASE_MASK
        super().__setattr__(name, value)


@dataclass
class _BlockState:
    unavail: bool = False
    split: bool = False


class BuddyAllocator:
    """Buddy-block bookkeeping for the malloc page directories.

    Each directory has a complete binary tree stored as an array: the
    root stands for the whole 4 MB and each leaf for one 4 KB page.
    """

    def __init__(self) -> None:
        self.metadata = [
            [_BlockState() for _ in range(MMAP_SIZE)] for _ in range(MALLOC_PD_SIZE)
        ]

    def malloc_tree(
        self, tree_idx: int, curr_order: int, target_order: int, pd: int
    ) -> Optional[int]:
        """Claim a free block of ``target_order`` below ``tree_idx``.

        Returns the index of the first page of the block, or None when
        no block of that order is free there.
        """
        if not 0 <= pd < MALLOC_PD_SIZE:
            raise ValueError(f"no such malloc page directory: {pd}")
        if not 0 <= target_order <= curr_order <= MAX_ORDER:
            raise ValueError(
                f"orders out of range: current {curr_order}, target {target_order}"
            )
        level = MAX_ORDER - curr_order
        if not (1 << level) - 1 <= tree_idx < (1 << (level + 1)) - 1:
            raise ValueError(f"tree index {tree_idx} is not at order {curr_order}")
        return self._search(tree_idx, curr_order, target_order, self.metadata[pd])

    def _search(
        self, tree_idx: int, curr_order: int, target_order: int, tree: list
    ) -> Optional[int]:
        node = tree[tree_idx]
        if node.unavail or (node.split and curr_order == target_order):
            return None
        if curr_order == target_order:
            node.unavail = True
            for _ in range(curr_order):
                tree_idx = _tree_left(tree_idx)
            return tree_idx - (MMAP_SIZE - NUM_PT)
        for child in (_tree_left(tree_idx), _tree_right(tree_idx)):
            found = self._search(child, curr_order - 1, target_order, tree)
            if found is not None:
                node.split = True
                return found
        return None


class PagingState:
    """The page directory and the two page tables as set up at boot."""

    def __init__(self) -> None:
        self.page_directory = [PageEntry() for _ in range(NUM_PD)]
        self.first_page_table = [PageEntry() for _ in range(NUM_PT)]
        self.vidmap_page_table = [PageEntry() for _ in range(NUM_PT)]
        self.allocator = BuddyAllocator()
        self.tlb_flushes = 0

        for i, (pde, pte) in enumerate(zip(self.page_directory, self.first_page_table)):
            pde.rw = 1
            pte.base_addr = (i * PAGE_SIZE) >> BASE_ADDR_BITS
            pte.rw = 1

        screen = self.first_page_table[SCREEN_VMEM_PT]
        screen.rw = 1
        screen.present = 1
        for terminal in range(TERMINAL_COUNT):
            page = self.first_page_table[TERM_VMEM_PT + terminal]
            page.rw = 1
            page.present = 1

        vmem = self.page_directory[VMEM_PD]
        vmem.table = self.first_page_table
        vmem.rw = 1
        vmem.present = 1

        kernel = self.page_directory[KERNEL_PD]
        kernel.base_addr = KERNEL_START >> BASE_ADDR_BITS
        kernel.global_ = 1
        kernel.size = 1
        kernel.rw = 1
        kernel.present = 1

        program = self.page_directory[USR_PRGM_PD]
        program.base_addr = 0
        program.user = 1
        program.size = 1
        program.rw = 1
        program.present = 1

        vidmap = self.page_directory[VIDMAP_PD]
        vidmap.table = self.vidmap_page_table
        vidmap.rw = 1
        vidmap.present = 1
        vidmap.user = 1

        vidmap_page = self.vidmap_page_table[VIDMAP_PT]
        vidmap_page.base_addr = 0
        vidmap_page.rw = 1
        vidmap_page.user = 1

        for i in range(MALLOC_PD_START, MALLOC_PD_END):
            entry = self.page_directory[i]
            entry.base_addr = i * BIG_PAGE_SIZE
            entry.rw = 1
            entry.size = 1
            entry.user = 1
            entry.present = 0

    def page_user_program(self, pid: int) -> None:
        """Map the user program page to the 4 MB frame of process ``pid``."""
        if pid < 0:
            raise ValueError(f"process number must not be negative: {pid}")
        self.page_directory[USR_PRGM_PD].base_addr = (
            (2 + pid) * BIG_PAGE_SIZE
        ) >> BASE_ADDR_BITS
        self.tlb_flushes += 1

    def change_vidmap(self, terminal: int, active: int, shown: int) -> None:
        """Point the user video page at the screen or at a terminal's backing page."""
        _check_terminal(terminal)
        page = self.vidmap_page_table[VIDMAP_PT]
        if active == shown:
            page.base_addr = VIDEO >> BASE_ADDR_BITS
        else:
            page.base_addr = term_vmem_address(terminal) >> BASE_ADDR_BITS