"""
Live Monitor

Shows the depth of every shard of the tracking queue and refreshes it in
place every couple of seconds.

Architecture:
- One cooperative loop: stop check -> refresh if due -> read a key -> sleep
- A refresh polls all shard depths, memory stats and held processor locks
- The table is redrawn in place (cursor save + move up), it never scrolls
- SIGINT, SIGTERM and the quit key only set a stop flag; the terminal is
  restored by a single cleanup() that runs on every exit path
"""

import math
import signal
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TextIO

from tracking_queue_app.backend.strategies import BackendStrategy
from tracking_queue_app.exceptions import BackendError
from tracking_queue_app.monitor.input_decoder import InputDecoder, Key, KeyCommand
from tracking_queue_app.monitor.terminal import TerminalSession
from tracking_queue_app.queue.manager import ProcessingLock, QueueManager

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
SAVE_CURSOR = "\033[s"
RESTORE_CURSOR = "\033[u"
COLUMN_ZERO = "\033[0G"

GREEN_BOLD = "\033[1;32m"
RED_BOLD = "\033[1;31m"
HEADER_STYLE = "\033[1;30;47m"
RESET = "\033[0m"

RULE = "-" * 30

# Footer rule, totals, rule, and the two status lines
LINES_BELOW_ROWS = 5


def cursor_up(lines: int) -> str:
    return f"\033[{lines}A"


@dataclass
class DashboardState:
    """Pagination and throughput bookkeeping of the monitor."""

    shard_count: int
    per_page: int
    current_page: int = 1
    last_poll_at: Optional[float] = None
    last_total: Optional[int] = None
    throughput: Optional[float] = None

    def __post_init__(self):
        self.per_page = min(max(self.per_page, 1), max(self.shard_count, 1))

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.shard_count / self.per_page))

    def clamp_page(self) -> int:
        self.current_page = min(max(self.current_page, 1), self.page_count)
        return self.current_page

    def first_index(self) -> int:
        return (self.current_page - 1) * self.per_page

    def page_indices(self) -> range:
        first = self.first_index()
        return range(first, first + self.per_page)

    def apply(self, key: Key) -> bool:
        """
        Move the current page according to a key.

        Pages are not clamped here, that happens on the next refresh.

        Returns:
            True if the key was a navigation key
        """
        command = key.command
        if command == KeyCommand.DIGIT:
            # Stay inside the current block of ten pages, 0 picks its tenth page
            offset = 10 if key.digit == 0 else key.digit
            self.current_page = math.floor((self.current_page - 0.1) / 10) * 10 + offset
        elif command == KeyCommand.NEXT:
            self.current_page += 1
        elif command == KeyCommand.PREV:
            self.current_page -= 1
        elif command == KeyCommand.NEXT10:
            self.current_page += 10
        elif command == KeyCommand.PREV10:
            self.current_page -= 10
        elif command == KeyCommand.FIRST:
            self.current_page = 1
        elif command == KeyCommand.LAST:
            self.current_page = self.page_count
        else:
            return False
        return True

    def record_poll(self, total: int, now: float) -> None:
        """Update throughput from the previous poll and remember this one"""
        if self.last_total is not None and self.last_poll_at is not None:
            elapsed = now - self.last_poll_at
            if elapsed > 0:
                self.throughput = round((self.last_total - total) / elapsed, 2)
        self.last_total = total
        self.last_poll_at = now


@dataclass
class PollSnapshot:
    """Everything one refresh reads from the backend"""
    depths: List[int]
    memory: Dict[str, Any] = field(default_factory=dict)
    locks: int = 0

    @property
    def total(self) -> int:
        return sum(self.depths)


class LiveDashboard:
    """
    Paginated, auto-refreshing view of the queue shards.

    Features:
    - Refresh every refresh_interval_ms, or right after a navigation key
    - Throughput (draining / growing) from consecutive polls
    - Keeps the last good poll when the backend hiccups
    - Optional iteration cap (handy for scripts and tests)
    """

    def __init__(
        self,
        backend: BackendStrategy,
        manager: QueueManager,
        lock: ProcessingLock,
        output: Optional[TextIO] = None,
        terminal: Optional[TerminalSession] = None,
        per_page: int = 16,
        refresh_interval_ms: int = 2000,
        iterations: Optional[int] = None,
        tick_ms: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        install_signal_handlers: bool = True
    ):
        """
        Initialize dashboard with dependencies.

        Args:
            backend: Backend used for memory stats
            manager: Queue manager providing the shard handles
            lock: Processor lock, reports how many workers are active
            output: Stream the dashboard is drawn on (stdout by default)
            terminal: Keyboard source (a TerminalSession on stdin by default)
            per_page: Shards shown per page, clamped to the shard count
            refresh_interval_ms: Time between two automatic refreshes
            iterations: Stop after this many refreshes (None = until quit)
            tick_ms: Sleep between two input polls
            clock: Monotonic clock in seconds
            sleep: Sleep function taking seconds
            install_signal_handlers: Trap SIGINT/SIGTERM (main thread only)
        """
        self.backend = backend
        self.manager = manager
        self.lock = lock
        self.output = output if output is not None else sys.stdout
        self.terminal = terminal if terminal is not None else TerminalSession()
        self.refresh_interval = refresh_interval_ms / 1000
        self.iterations = iterations
        self.tick = tick_ms / 1000
        self.clock = clock
        self.sleep = sleep
        self.install_signal_handlers = install_signal_handlers

        self.shards = manager.get_all_queues()
        self.state = DashboardState(shard_count=len(self.shards), per_page=per_page)
        self.decoder = InputDecoder()

        self.running = False
        self.refresh_count = 0
        self.snapshot: Optional[PollSnapshot] = None
        self.stale = False
        self.last_error: Optional[str] = None
        self._cleaned_up = False
        self._previous_handlers: Dict[int, Any] = {}

    def run(self) -> int:
        """Run until quit, signal or iteration cap; returns the exit code"""
        try:
            self._start()
            self._loop()
        finally:
            self.cleanup()
        return 0

    def stop(self) -> None:
        """Ask the loop to finish (safe to call from a signal handler)"""
        self.running = False

    def cleanup(self) -> None:
        """Restore cursor, terminal mode and signal handlers (runs once)"""
        if self._cleaned_up:
            return
        self._cleaned_up = True
        self.running = False

        try:
            self._write(RESTORE_CURSOR + SHOW_CURSOR + "\n")
        except (OSError, ValueError) as e:
            # Output closed under us (broken pipe, closed stream)
            print(f"⚠️  Could not restore cursor: {e}", file=sys.stderr)
        finally:
            self.terminal.restore()
            self._restore_signal_handlers()

    def _start(self) -> None:
        self.running = True
        self._write_header()
        self._write(HIDE_CURSOR)
        self.terminal.open()
        if self.install_signal_handlers:
            for signum in (signal.SIGINT, signal.SIGTERM):
                self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _loop(self) -> None:
        last_render = self.clock() - self.refresh_interval
        key_pressed = False

        while self.running:
            now = self.clock()
            if key_pressed or now - last_render >= self.refresh_interval:
                self.refresh(now)
                last_render = now
                if self.iterations is not None and self.refresh_count >= self.iterations:
                    break

            key_pressed = self._handle_input()
            if not self.running:
                break

            self.sleep(self.tick)

    def refresh(self, now: float) -> None:
        """Poll the backend and redraw the table in place"""
        self.state.clamp_page()

        snapshot = self._poll()
        if snapshot is not None:
            self.snapshot = snapshot
            self.stale = False
            self.state.record_poll(snapshot.total, now)
        else:
            self.stale = True

        lines = self.render_lines()
        self._write("".join(line + "\n" for line in lines))
        self._write(SAVE_CURSOR + COLUMN_ZERO + cursor_up(len(lines)))
        self.refresh_count += 1

    def render_lines(self) -> List[str]:
        """Rows of the current page, footer and status lines"""
        state = self.state
        depths = self.snapshot.depths if self.snapshot else []
        total = self.snapshot.total if self.snapshot else 0
        memory = self.snapshot.memory if self.snapshot else {}
        locks = self.snapshot.locks if self.snapshot else 0

        lines = []
        for index in state.page_indices():
            if index < len(self.shards) and index < len(depths):
                lines.append(f"{index:>10} | {depths[index]:>16,}")
            else:
                lines.append(" " * 10 + " | " + " " * 16)

        lines.append(RULE)
        lines.append(
            HEADER_STYLE + f" {len(self.shards)} Q".ljust(10) + " | " + f"{total:,} R".ljust(16) + RESET
        )
        lines.append(RULE)

        first = state.first_index()
        status = (
            f"Q [{first}-{first + state.per_page - 1}] | page {state.current_page}/{state.page_count} | "
            f"{InputDecoder.CONTROLS_LEGEND} | diff/sec {self._format_throughput()}"
        )
        if self.stale:
            status += " (stale)"
        lines.append(status + " " * 9)
        lines.append(
            f"{memory.get('used_memory_human') or 'Unknown'} used memory "
            f"({memory.get('used_memory_peak_human') or 'Unknown'} peak). "
            f"{locks} workers active." + " " * 15
        )
        return lines

    def _poll(self) -> Optional[PollSnapshot]:
        try:
            depths = [shard.get_number_of_request_sets_in_queue() for shard in self.shards]
            memory = self.backend.get_memory_stats() or {}
            locks = self.lock.get_number_of_acquired_locks()
        except BackendError as e:
            self.last_error = str(e)
            return None
        return PollSnapshot(depths=depths, memory=memory, locks=locks)

    def _format_throughput(self) -> str:
        rate = self.state.throughput
        if not rate:
            return "0"
        if rate < 0:
            return f"{RED_BOLD}-{abs(rate)}/s growing{RESET}"
        return f"{GREEN_BOLD}+{rate}/s draining{RESET}"

    def _handle_input(self) -> bool:
        key = self.decoder.decode(self.terminal.read(3))
        if key.command == KeyCommand.QUIT:
            self.stop()
            return False
        return self.state.apply(key)

    def _write_header(self) -> None:
        self._write(
            RULE + "\n"
            + HEADER_STYLE + " Q INDEX".ljust(10) + " | REQUEST SETS".ljust(20) + RESET + "\n"
            + RULE + "\n"
        )

    def _write(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()

    def _signal_handler(self, signum, frame):
        """Handle signals for graceful shutdown"""
        self.stop()

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            # None means the previous handler was not installed from Python
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
