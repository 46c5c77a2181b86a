"""
Keyboard input decoding for the live monitor.

Keys:
    ,        first page
    .        last page
    0-9      jump inside the current block of ten pages (0 = tenth page)
    RIGHT    next page          LEFT   previous page
    UP       ten pages forward  DOWN   ten pages back
    q        quit
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class KeyCommand(Enum):
    """Logical navigation commands"""
    DIGIT = "digit"
    FIRST = "first"
    LAST = "last"
    NEXT = "next"
    PREV = "prev"
    NEXT10 = "next10"
    PREV10 = "prev10"
    QUIT = "quit"
    NONE = "none"


@dataclass(frozen=True)
class Key:
    command: KeyCommand
    digit: Optional[int] = None


NO_KEY = Key(KeyCommand.NONE)

ESCAPE_PREFIX = b"\x1b["

# Final byte of the ANSI cursor key sequences
ARROW_KEYS = {
    ord("A"): KeyCommand.NEXT10,  # up
    ord("B"): KeyCommand.PREV10,  # down
    ord("C"): KeyCommand.NEXT,    # right
    ord("D"): KeyCommand.PREV,    # left
}

LITERAL_KEYS = {
    ord(","): KeyCommand.FIRST,
    ord("."): KeyCommand.LAST,
    ord("q"): KeyCommand.QUIT,
}


class InputDecoder:
    """Turns raw terminal bytes into a Key"""

    CONTROLS_LEGEND = "press (0-9.,q) or arrow(L,R,U,D)"

    @staticmethod
    def decode(raw: bytes) -> Key:
        if not raw:
            return NO_KEY

        if len(raw) == 3:
            if raw[:2] != ESCAPE_PREFIX:
                return NO_KEY
            command = ARROW_KEYS.get(raw[2])
            return Key(command) if command else NO_KEY

        if len(raw) == 1:
            byte = raw[0]
            if ord("0") <= byte <= ord("9"):
                return Key(KeyCommand.DIGIT, byte - ord("0"))
            command = LITERAL_KEYS.get(byte)
            return Key(command) if command else NO_KEY

        return NO_KEY
