"""Terminal collaborator: key events in, rendered lines out."""

import os
import select
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from rich.console import Console
from rich.control import Control
from rich.text import Text

from trydir.constants import DEFAULT_TERMINAL_SIZE
from trydir.errors import InputFailure, RenderFailure

ESCAPE_TIMEOUT = 0.05  # seconds to wait for the rest of an escape sequence
RESIZE_POLL_INTERVAL = 0.2  # seconds between terminal size checks while idle


class Key(str, Enum):
    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    DELETE = "delete"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    ESCAPE = "escape"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


Event = Union[KeyEvent, ResizeEvent]


class Terminal(Protocol):
    """What the selector needs from a terminal."""

    def size(self) -> tuple[int, int]: ...

    def draw(self, lines: list[Text]) -> None: ...

    def read_event(self) -> Event: ...


_SEQUENCES = {
    b"\r": Key.ENTER,
    b"\n": Key.ENTER,
    b"\x7f": Key.BACKSPACE,
    b"\x08": Key.BACKSPACE,
    b"\x1b": Key.ESCAPE,
    b"\x03": Key.ESCAPE,  # Ctrl-C when ISIG is off
    b"\x10": Key.UP,  # Ctrl-P
    b"\x0e": Key.DOWN,  # Ctrl-N
    b"\x04": Key.DELETE,  # Ctrl-D
    b"\x01": Key.HOME,  # Ctrl-A
    b"\x05": Key.END,  # Ctrl-E
    b"\x02": Key.LEFT,  # Ctrl-B
    b"\x06": Key.RIGHT,  # Ctrl-F
    b"\x1b[A": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1b[C": Key.RIGHT,
    b"\x1b[D": Key.LEFT,
    b"\x1b[H": Key.HOME,
    b"\x1b[F": Key.END,
    b"\x1bOA": Key.UP,
    b"\x1bOB": Key.DOWN,
    b"\x1bOC": Key.RIGHT,
    b"\x1bOD": Key.LEFT,
    b"\x1bOH": Key.HOME,
    b"\x1bOF": Key.END,
    b"\x1b[1~": Key.HOME,
    b"\x1b[7~": Key.HOME,
    b"\x1b[4~": Key.END,
    b"\x1b[8~": Key.END,
    b"\x1b[3~": Key.DELETE,
}


def decode_key(data: bytes) -> Optional[KeyEvent]:
    """Decode one complete key sequence.

    Args:
        data: Raw bytes of a single key press

    Returns:
        KeyEvent, or None for sequences the selector does not use
    """
    if data in _SEQUENCES:
        return KeyEvent(_SEQUENCES[data])

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None

    if len(text) == 1 and text.isprintable():
        return KeyEvent(Key.CHAR, text)
    return None


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class TtyTerminal:
    """POSIX terminal in cbreak mode, drawing with rich on stderr.

    Use as a context manager; leaving it restores the terminal even when
    rendering failed.
    """

    def __init__(self, console: Optional[Console] = None, tty_path: str = "/dev/tty"):
        """Initialize terminal.

        Args:
            console: Console to draw on (stderr by default, since stdout
                carries the shell command)
            tty_path: Device to read keys from
        """
        self.console = console or Console(file=sys.stderr, highlight=False)
        self.tty_path = tty_path
        self._fd: Optional[int] = None
        self._saved_attrs = None
        self._last_size: Optional[tuple[int, int]] = None

    def __enter__(self) -> "TtyTerminal":
        import termios  # POSIX
        import tty  # POSIX

        try:
            self._fd = os.open(self.tty_path, os.O_RDONLY)
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        except (OSError, termios.error) as e:
            self._close()
            raise InputFailure(f"Cannot open terminal {self.tty_path}: {e}") from e

        self.console.set_alt_screen(True)
        self.console.show_cursor(False)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.console.show_cursor(True)
            self.console.set_alt_screen(False)
        finally:
            self._close()

    def _close(self) -> None:
        if self._fd is None:
            return

        import termios  # POSIX

        try:
            if self._saved_attrs is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        finally:
            os.close(self._fd)
            self._fd = None
            self._saved_attrs = None

    def size(self) -> tuple[int, int]:
        try:
            width, height = self.console.size
        except (OSError, ValueError):
            return DEFAULT_TERMINAL_SIZE
        return width, height

    def draw(self, lines: list[Text]) -> None:
        """Overwrite the screen with ``lines``, one per row."""
        self._last_size = self.size()
        width, _ = self._last_size
        try:
            self.console.control(Control.home())
            for i, line in enumerate(lines):
                row = line.copy()
                row.truncate(max(1, width - 1), overflow="ellipsis", pad=True)
                end = "" if i == len(lines) - 1 else "\n"
                self.console.print(row, end=end, soft_wrap=True)
            self.console.file.flush()
        except OSError as e:
            raise RenderFailure(f"Terminal write failed: {e}") from e

    def read_event(self) -> Event:
        """Block until a key the selector understands is pressed or the
        terminal is resized.

        Raises:
            InputFailure: If the terminal closed
        """
        if self._fd is None:
            raise InputFailure("Terminal is not open")

        while True:
            try:
                if not self._pending(RESIZE_POLL_INTERVAL):
                    resize = self._check_resize()
                    if resize is not None:
                        return resize
                    continue
                data = self._read_sequence()
            except KeyboardInterrupt:
                return KeyEvent(Key.ESCAPE)

            event = decode_key(data)
            if event is not None:
                return event

    def _read_byte(self) -> bytes:
        if self._fd is None:
            raise InputFailure("Terminal is not open")
        try:
            data = os.read(self._fd, 1)
        except OSError as e:
            raise InputFailure(f"Terminal read failed: {e}") from e
        if not data:
            raise InputFailure("Terminal closed")
        return data

    def _check_resize(self) -> Optional[ResizeEvent]:
        size = self.size()
        changed = self._last_size is not None and size != self._last_size
        self._last_size = size
        return ResizeEvent(*size) if changed else None

    def _pending(self, timeout: float = ESCAPE_TIMEOUT) -> bool:
        ready, _, _ = select.select([self._fd], [], [], timeout)
        return bool(ready)

    def _read_sequence(self) -> bytes:
        data = self._read_byte()

        if data == b"\x1b":
            if not self._pending():
                return data
            data += self._read_byte()
            if data[-1:] not in (b"[", b"O"):
                return data
            # CSI / SS3: read up to the final byte
            while True:
                data += self._read_byte()
                if 0x40 <= data[-1] <= 0x7E:
                    return data

        for _ in range(_utf8_length(data[0]) - 1):
            data += self._read_byte()
        return data
