"""
Evaluation progress accounting and live console display.

Progress is depth-weighted: each position contributes the target depth once
it is filled (by either source), its worker's current depth while a local
search runs, and nothing while unassigned. This moves smoothly mid-search
instead of jumping one position at a time.
"""

import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from review.models import LocalHandle, Position


@dataclass
class ProgressSnapshot:
    """Progress state passed to on_progress callbacks."""
    percent: float
    evaluated: int
    total: int
    active: dict[int, int] = field(default_factory=dict)  # position index -> live depth


def position_depth(position: Position, target_depth: int) -> int:
    """Depth credited to one position for progress purposes."""
    if position.evaluated:
        return target_depth
    if isinstance(position.source, LocalHandle):
        # An unresolved search never counts as complete
        return min(position.source.worker.depth, target_depth - 1)
    return 0


def compute_progress(positions: list[Position], target_depth: int) -> float:
    """Depth-weighted completion percentage of a position list."""
    if not positions:
        return 100.0
    total = sum(position_depth(p, target_depth) for p in positions)
    return total / (len(positions) * target_depth) * 100


def snapshot(positions: list[Position], target_depth: int, percent: float) -> ProgressSnapshot:
    active = {
        p.index: p.source.worker.depth
        for p in positions
        if isinstance(p.source, LocalHandle) and not p.evaluated
    }
    return ProgressSnapshot(
        percent=percent,
        evaluated=sum(1 for p in positions if p.evaluated),
        total=len(positions),
        active=active,
    )


class ProgressTracker:
    """
    Holds the published progress value for one run.

    Values only ever go up; a worker replaced after a failure restarts at
    depth 0, which must not pull the published figure back down. Only
    finish() reports 100.
    """

    def __init__(self):
        self.percent = 0.0
        self.lock = threading.Lock()

    def update(self, percent: float) -> float:
        with self.lock:
            if percent >= 100.0:
                # 100 is reserved for finish()
                percent = self.percent
            self.percent = max(self.percent, percent)
            return self.percent

    def finish(self) -> float:
        with self.lock:
            self.percent = 100.0
            return self.percent


class ProgressDisplay:
    """
    Live console display of local evaluation.

    One bar per worker slot, showing search depth against the target:
      Move   12: ●●●●●●●●●●●●●●●●●●●●○○○○○○○○○○○○ d10/16
      Move   13: ●●●●●●●●●●○○○○○○○○○○○○○○○○○○○○○○ d5/16
      [empty]  : ○○○○○○○○○○○○○○○○○○○○○○○○○○○○○○○○
      [31/62 evaluated | 2 active | 54.8%]
    """

    BAR_WIDTH = 32
    FILLED_CHAR = "●"
    EMPTY_CHAR = "○"
    REFRESH_INTERVAL = 0.5  # seconds

    def __init__(self, target_depth: int, concurrency: int):
        self.target_depth = target_depth
        self.concurrency = concurrency
        self.current: Optional[ProgressSnapshot] = None
        self.lock = threading.Lock()
        self.display_thread: Optional[threading.Thread] = None
        self.running = False
        self.lines_printed = 0
        self.ansi_supported = self._check_ansi_support()

    def _check_ansi_support(self) -> bool:
        """Check if the terminal can redraw lines in place."""
        if not sys.stdout.isatty():
            return False
        if os.name == 'nt':
            # Enable virtual terminal processing on Windows 10+
            try:
                import ctypes
                kernel32 = ctypes.windll.kernel32
                kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
                return True
            except Exception:
                return False
        return True

    def update(self, progress: ProgressSnapshot):
        """Record the latest snapshot (on_progress callback)."""
        with self.lock:
            self.current = progress

    def _format_slot(self, index: int, depth: int) -> str:
        filled = int(min(1.0, depth / self.target_depth) * self.BAR_WIDTH)
        bar = self.FILLED_CHAR * filled + self.EMPTY_CHAR * (self.BAR_WIDTH - filled)
        return f"  Move {index:4d}: {bar} d{depth}/{self.target_depth}"

    def _format_empty_slot(self) -> str:
        return f"  {'[empty]':<9}: {self.EMPTY_CHAR * self.BAR_WIDTH}"

    def _render(self) -> list[str]:
        with self.lock:
            current = self.current
        if current is None:
            return []

        lines = []
        active = sorted(current.active.items())
        for i in range(self.concurrency):
            if i < len(active):
                lines.append(self._format_slot(*active[i]))
            else:
                lines.append(self._format_empty_slot())

        lines.append(
            f"  [{current.evaluated}/{current.total} evaluated | "
            f"{len(current.active)} active | {current.percent:.1f}%]"
        )
        return lines

    def _clear_lines(self, count: int):
        if not self.ansi_supported or count == 0:
            return
        for _ in range(count):
            sys.stdout.write('\033[F')  # Move up
            sys.stdout.write('\033[K')  # Clear line
        sys.stdout.flush()

    def _display_loop(self):
        while self.running:
            self._update_display()
            time.sleep(self.REFRESH_INTERVAL)

    def _update_display(self):
        lines = self._render()
        if not lines:
            return

        self._clear_lines(self.lines_printed)
        for line in lines:
            print(line)
        self.lines_printed = len(lines)
        sys.stdout.flush()

    def start(self):
        """Start the display update thread."""
        if not self.ansi_supported:
            return
        self.running = True
        self.display_thread = threading.Thread(target=self._display_loop, daemon=True)
        self.display_thread.start()

    def stop(self):
        """Stop the display and clear it from the terminal."""
        self.running = False
        if self.display_thread:
            self.display_thread.join(timeout=1.0)
        self._clear_lines(self.lines_printed)
        self.lines_printed = 0
