"""
Terminal ownership for the live monitor (POSIX only).

While the session is open the terminal is in cbreak mode: keys arrive one
by one without waiting for Enter and are not echoed. Reads never block.
When stdin is not a terminal (pipes, CI) the session is inert and reads
return nothing.
"""

import os
import select
import sys
import termios
import tty


class TerminalSession:
    """Context manager switching stdin to non-blocking, unbuffered reads."""

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdin
        self._fd = None
        self._saved_mode = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()
        return False

    def open(self) -> None:
        try:
            fd = self.stream.fileno()
        except (AttributeError, OSError, ValueError):
            return
        if not os.isatty(fd):
            return

        self._saved_mode = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        self._fd = fd

    def read(self, size: int = 3) -> bytes:
        """Return whatever input is available right now (up to size bytes)"""
        if self._fd is None:
            return b""
        ready, _, _ = select.select([self._fd], [], [], 0)
        if not ready:
            return b""
        return os.read(self._fd, size)

    def restore(self) -> None:
        """Put the terminal back into the mode it had before open()"""
        fd, saved = self._fd, self._saved_mode
        self._fd = None
        self._saved_mode = None
        if fd is None or saved is None:
            return
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        except termios.error as e:
            # Terminal already gone (hangup), nothing left to restore
            print(f"⚠️  Could not restore terminal mode: {e}", file=sys.stderr)
