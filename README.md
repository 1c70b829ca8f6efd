# kernsim

`kernsim` models the parts of a small x86 teaching kernel as plain Python
objects. You can inspect them, drive them from tests and try things out
without booting anything. There are no dependencies outside the standard
library.

## Modules

- `kernsim.support`: user-level string helpers (`strlen`, `strcmp`,
  `strncmp`, `fdputs`). They stop at the first NUL, and the comparisons work
  on unsigned bytes. Also the `SyscallNumber` enumeration (`HALT` = 1 …
  `SIGRETURN` = 10).
- `kernsim.textfmt`: kernel formatting helpers.
  - `itoa(value, radix)` takes the value as unsigned 32-bit.
  - `strrev` and `strncpy(src, n)`. `strncpy` returns exactly `n` bytes, padded with NULs.
  - `ipow` does 32-bit wrapping power.
  - `strncmp` compares signed chars.
  - `kprintf_format(fmt, *args)` renders the kernel's `printf` dialect: `%%`, `%x`, `%#x` (eight zero-padded hex digits), `%u`, `%d`, `%c` and `%s`. Unknown conversions print nothing, and too few arguments raise `ValueError`.
- `kernsim.console`: `Console(rows=25, cols=80)`, a grid of character/attribute cells.
  - `putc`, `puts` and `printf` handle newline, backspace, wrapping and scrolling.
  - `clear`, `scroll_up`, `row_text(row)` and `text()` read or reset the grid.
  - `switch_screen(old_term, curr_term, cursor)` saves the position and history indices of one of three terminals and routes output either to the shown screen or to that terminal's backing buffer.
- `kernsim.i8259`: `Pic`, the cascaded master/slave interrupt controller pair.
  - `init`, `enable_irq`, `disable_irq` and `send_eoi` are available. IRQs outside 0–15 raise `ValueError`.
  - Every byte sent is recorded in `Pic.writes` as `(data, port)` and passed to the optional `port_writer(data, port)` callable.
- `kernsim.filesystem`: `FileSystem`, a reader for the read-only boot-block image format (4 KB blocks, up to 63 directory entries, 32-character names).
  - Build one from bytes or with `FileSystem.from_file(path)`.
  - Look entries up with `read_dentry_by_name` or `read_dentry_by_index`, which return a `Dentry`.
  - Read data with `read_data(inode, offset, length)` and `inode_length`.
  - Open handles with `open_file` (an `OpenFile` with `read` and `read_nopos`) and `open_directory` (an `OpenDirectory` whose `read` returns one name per call).
  - Loader checks: `check_file_type`, `check_program_image` (ELF magic), `load_program_image` and `find_program_entry` (the word at byte 24).
  - Listing text: `format_file_name` and `describe_dentry`.
  - Failures raise `FileSystemError`; writes are always refused with it.
- `kernsim.keyboard`: `Keyboard(console)`, with the `KeyMap` tables for letters and symbols.
  - `update_state_keys` tracks shift and caps lock.
  - `check_keys` and `check_states` decode a scancode into a character.
  - `add_to_buffer`, `backspace_pressed` and `check_buffer_overflow` edit the 128-byte line buffer of the shown terminal and echo to the console.
  - `type_command(up)` walks a 32-entry command history.
- `kernsim.paging`: `PagingState` holds the page directory and two page tables as set up at boot, made of `PageEntry` records.
  - `page_user_program(pid)` and `change_vidmap(terminal, active, shown)` update the mappings.
  - `BuddyAllocator.malloc_tree` claims buddy blocks in the malloc page directories.
  - `term_vmem_address(terminal)` gives the address of a terminal's backing video page.
- `kernsim.idt`: `Idt`, the 256-entry descriptor table with exception, PIT, keyboard, RTC and system-call gates filled in. Also `exception_name`, `format_exception` and `format_error_exception` for exception reports.
- `kernsim.emulate`: host-side stand-ins for user programs.
  - `parse_command` splits a command line and prefixes the program with `./`.
  - `execute(command, cwd)` runs it as a subprocess and returns its exit status, -1 if it cannot start or is killed, and 256 for any other signal.
  - `getargs(argv, nbytes)` joins the arguments.
  - `DirectoryReader` lists a host directory one NUL-padded name per `read`; it is also a context manager.
- `kernsim.fish`: data for the blinking-fish animation.
  - `BlinkStruct` and the `IoctlCommand` values.
  - `build_frames(frame0, frame1)` and `load_frames(path0, path1)` turn two text frames into blink records starting 40 columns in.
  - `BlinkPool` is a fixed pool of 2000 records.

## Examples

Read a file out of a filesystem image:

```python
from kernsim.filesystem import FileSystem

fs = FileSystem.from_file("filesys_img")
handle = fs.open_file("frame0.txt")
print(handle.read(4096).decode("latin-1"))
```

Format text the way the kernel's `printf` does:

```python
from kernsim.textfmt import kprintf_format

kprintf_format("%#x %d %s", 0xE, -5, "ok")   # '0000000E -5 ok'
```

Drive the interrupt controller and look at the port writes:

```python
from kernsim.i8259 import Pic

pic = Pic()
pic.init()
pic.enable_irq(1)
print(pic.writes[-1])   # (0xF9, 0x21)
```

Build the fish animation from its two frame files:

```python
from kernsim.fish import load_frames

blinks = load_frames("frame0.txt", "frame1.txt")
```

## What it does not do

`kernsim` models pieces of a kernel separately; it is not a running kernel.
There is no boot sequence, no system call dispatch, no process table or
scheduler, no timer or real-time-clock device, and no shell. Nothing animates
the fish records on a screen. The package has no command-line entry point.

## Running the tests

```
pip install -e .[test]
pytest
```