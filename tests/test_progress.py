"""Tests for review.progress module."""

import chess

from review.models import LOCAL_DONE, REMOTE_DONE, LocalHandle, Position
from review.progress import (
    ProgressDisplay,
    ProgressSnapshot,
    ProgressTracker,
    compute_progress,
    position_depth,
    snapshot,
)


def running_position(index, worker):
    return Position(index=index, fen=chess.STARTING_FEN, source=LocalHandle(worker))


class TestComputeProgress:
    """Tests for depth-weighted progress."""

    def test_unassigned_counts_nothing(self):
        positions = [Position(index=i, fen=chess.STARTING_FEN) for i in range(4)]

        assert compute_progress(positions, 10) == 0.0

    def test_filled_counts_full_depth(self, lines):
        positions = [Position(index=i, fen=chess.STARTING_FEN) for i in range(4)]
        positions[0].fill(lines(10), REMOTE_DONE)
        positions[1].fill(lines(10), LOCAL_DONE)

        assert compute_progress(positions, 10) == 50.0

    def test_running_worker_counts_live_depth(self, fake_worker):
        worker = fake_worker("hold")
        worker.depth = 5
        positions = [running_position(0, worker), Position(index=1, fen=chess.STARTING_FEN)]

        assert compute_progress(positions, 10) == 25.0

    def test_running_worker_never_counts_as_done(self, fake_worker):
        """A search at full depth that has not returned yet stays below 100%."""
        worker = fake_worker("hold")
        worker.depth = 10

        assert position_depth(running_position(0, worker), 10) == 9
        assert compute_progress([running_position(0, worker)], 10) < 100.0

    def test_empty_game_is_complete(self):
        assert compute_progress([], 10) == 100.0

    def test_snapshot(self, lines, fake_worker):
        worker = fake_worker("hold")
        worker.depth = 3
        done = Position(index=0, fen=chess.STARTING_FEN)
        done.fill(lines(8), LOCAL_DONE)
        positions = [done, running_position(1, worker), Position(index=2, fen=chess.STARTING_FEN)]

        snap = snapshot(positions, 8, 42.0)

        assert snap.percent == 42.0
        assert snap.evaluated == 1
        assert snap.total == 3
        assert snap.active == {1: 3}


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_never_decreases(self):
        tracker = ProgressTracker()

        assert tracker.update(30.0) == 30.0
        assert tracker.update(20.0) == 30.0
        assert tracker.update(45.5) == 45.5

    def test_100_reserved_for_finish(self):
        tracker = ProgressTracker()
        tracker.update(80.0)

        assert tracker.update(100.0) == 80.0
        assert tracker.finish() == 100.0


class TestProgressDisplay:
    """Tests for ProgressDisplay rendering."""

    def test_nothing_rendered_before_first_update(self):
        display = ProgressDisplay(target_depth=16, concurrency=2)

        assert display._render() == []

    def test_slots_and_summary(self):
        display = ProgressDisplay(target_depth=16, concurrency=3)
        display.update(ProgressSnapshot(percent=54.8, evaluated=31, total=62,
                                        active={13: 5, 12: 8}))

        lines = display._render()

        assert len(lines) == 4
        assert lines[0].startswith("  Move   12: ")
        assert lines[0].endswith("d8/16")
        assert lines[0].count(ProgressDisplay.FILLED_CHAR) == 16
        assert lines[1].endswith("d5/16")
        assert "[empty]" in lines[2]
        assert lines[3] == "  [31/62 evaluated | 2 active | 54.8%]"

    def test_start_is_noop_without_terminal(self):
        display = ProgressDisplay(target_depth=16, concurrency=2)
        display.ansi_supported = False

        display.start()
        display.stop()

        assert display.display_thread is None
