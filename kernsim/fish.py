"""The fish animation: blink records built from two text frames, and their pool."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, fields
from typing import Union

NUM_COLS = 80
NUM_ROWS = 25
FRAME_OFFSET = 40
FRAME_ON_LENGTH = 15
FRAME_OFF_LENGTH = 15


class IoctlCommand(enum.IntEnum):
    """Commands accepted by the blink driver's ioctl."""

    ADD = 0
    REMOVE = 1
    FIND = 2
    SYNC = 3


@dataclass
class BlinkStruct:
    """A screen cell that alternates between two characters."""

    location: int = 0
    on_char: str = "\0"
    off_char: str = "\0"
    on_length: int = 0
    off_length: int = 0
    countdown: int = 0
    status: int = 0

    def reset(self) -> None:
        """Zero every field."""
        for f in fields(self):
            setattr(self, f.name, f.default)


def build_frames(frame0: str, frame1: str) -> list[BlinkStruct]:
    """Blink records for every cell where either frame shows a non-blank character.

    Frame 0 gives the on character and frame 1 the off character; a
    shorter line is padded with spaces. Cells start 40 columns in.
    """
    lines0 = frame0.split("\n")
    lines1 = frame1.split("\n")
    blinks = []
    for row in range(max(len(lines0), len(lines1))):
        line0 = lines0[row] if row < len(lines0) else ""
        line1 = lines1[row] if row < len(lines1) else ""
        for col in range(max(len(line0), len(line1))):
            c0 = line0[col] if col < len(line0) else " "
            c1 = line1[col] if col < len(line1) else " "
            if c0 == " " and c1 == " ":
                continue
            blinks.append(
                BlinkStruct(
                    location=row * NUM_COLS + col + FRAME_OFFSET,
                    on_char=c0,
                    off_char=c1,
                    on_length=FRAME_ON_LENGTH,
                    off_length=FRAME_OFF_LENGTH,
                )
            )
    return blinks


def load_frames(
    path0: Union[str, os.PathLike], path1: Union[str, os.PathLike]
) -> list[BlinkStruct]:
    """Read two frame files and build their blink records."""
    with open(path0, encoding="latin-1", newline="") as f0:
        text0 = f0.read()
    with open(path1, encoding="latin-1", newline="") as f1:
        text1 = f1.read()
    return build_frames(text0, text1)


class BlinkPool:
    """Fixed pool of one blink record per screen cell.

    A record whose location is zero counts as free.
    """

    def __init__(self) -> None:
        self.slots = [BlinkStruct() for _ in range(NUM_COLS * NUM_ROWS)]

    def allocate(self) -> BlinkStruct:
        """The first free record; the caller sets its location to claim it."""
        for slot in self.slots:
            if slot.location == 0:
                return slot
        raise MemoryError("no free blink records")

    def free(self, blink: BlinkStruct) -> None:
        """Zero a record so it can be handed out again."""
        blink.reset()