"""
Evaluation orchestrator.

Runs one review at a time:

1. Parse the PGN into positions.
2. Cloud pass - look positions up in game order, stopping at the first miss
   (cloud coverage is assumed to be a contiguous prefix of the game).
3. Local pass - evaluate everything left with a bounded pool of engine
   workers, refreshing depth-weighted progress while searches run.
4. Hand the evaluated positions to the report builder.

All position state is written from the thread running the review; workers
only report back through the pool's completion queue.
"""

import threading
import traceback
from enum import Enum
from typing import Callable, Optional

from review.cloud import CloudClient
from review.config import AnalysisConfig, get_config, validate_depth
from review.engine import make_worker_factory
from review.errors import ReviewError, WorkerError
from review.models import (
    LOCAL_DONE,
    REMOTE_DONE,
    UNASSIGNED,
    AnalysisResult,
    LocalHandle,
    ParsedGame,
    Players,
    Position,
    Unassigned,
)
from review.pgn import positions_from_pgn
from review.pool import Completion, WorkerPool
from review.progress import ProgressSnapshot, ProgressTracker, compute_progress, snapshot
from review.report import ReportBuilder, evaluation_summary, generate_report

StatusCallback = Callable[[str], None]
ProgressCallback = Callable[[ProgressSnapshot], None]


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"


# One review at a time across the whole process, whichever orchestrator runs it
_run_lock = threading.Lock()
_active_run = None


class AnalysisRun:
    """State for a single review: the positions being filled and who fills them."""

    def __init__(self, players: Players, positions: list[Position], depth: int,
                 on_status: Optional[StatusCallback] = None,
                 on_progress: Optional[ProgressCallback] = None):
        self.players = players
        self.positions = positions
        self.depth = depth
        self.on_status = on_status
        self.on_progress = on_progress
        self.tracker = ProgressTracker()
        self.failures: dict[int, int] = {}  # position index -> failed worker count

    def all_evaluated(self) -> bool:
        return all(p.evaluated for p in self.positions)


class Orchestrator:
    """
    Schedules evaluation work for a game and hands the result to the report builder.

    Only one review may run at a time in the process, across all instances.
    A request made while one is running is ignored: run() returns None and
    start() returns False.
    """

    def __init__(self, config: AnalysisConfig = None, cloud: CloudClient | None = None,
                 worker_factory: Callable = None,
                 report_builder: ReportBuilder = evaluation_summary):
        self.config = config or AnalysisConfig()
        self.cloud = cloud  # None skips the cloud pass
        self.worker_factory = worker_factory
        self.report_builder = report_builder

        self.state = RunState.IDLE
        self.status = ""
        self.progress = 0.0
        self.result: AnalysisResult | None = None
        self.error: ReviewError | None = None

        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> bool:
        """
        Move from idle/failed to running.

        Returns False if any review is already active in this process,
        whichever orchestrator is running it.
        """
        global _active_run
        with _run_lock:
            if _active_run is not None:
                return False
            _active_run = self
            self.state = RunState.RUNNING
            self.progress = 0.0
            self.status = ""
            self.result = None
            self.error = None
            return True

    def _end(self, state: RunState):
        global _active_run
        with _run_lock:
            self.state = state
            if _active_run is self:
                _active_run = None

    @property
    def running(self) -> bool:
        return self.state is RunState.RUNNING

    def _prepare(self, pgn: str, depth: int | None,
                 on_status: Optional[StatusCallback]) -> tuple[ParsedGame, int]:
        """Check the request before any run state changes."""
        depth = self.config.depth if depth is None else depth
        validate_depth(depth)
        if on_status:
            on_status("Parsing PGN...")
        return positions_from_pgn(pgn), depth

    def run(self, pgn: str, depth: int | None = None,
            on_status: Optional[StatusCallback] = None,
            on_progress: Optional[ProgressCallback] = None) -> AnalysisResult | None:
        """
        Review a game on the calling thread.

        Returns:
            AnalysisResult, or None if another review is already running

        Raises:
            InputError/ParseError: bad PGN or depth (nothing about the
                previous run is touched)
            WorkerError: a local worker kept failing
            ReportError: the report builder rejected the evaluations
        """
        game, depth = self._prepare(pgn, depth, on_status)
        if not self.begin():
            return None
        return self._execute(game, depth, on_status, on_progress)

    def start(self, pgn: str, depth: int | None = None,
              on_status: Optional[StatusCallback] = None,
              on_progress: Optional[ProgressCallback] = None) -> bool:
        """
        Review a game on a background thread.

        Input is checked on the calling thread, so InputError/ParseError are
        raised here. Returns False (and changes nothing) if a review is
        already running. The outcome is available afterwards from `state`,
        `result` and `error`.
        """
        game, depth = self._prepare(pgn, depth, on_status)
        if not self.begin():
            return False
        self._thread = threading.Thread(
            target=self._execute_in_background,
            args=(game, depth, on_status, on_progress),
            daemon=True
        )
        self._thread.start()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for a background review. Returns True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _execute_in_background(self, game, depth, on_status, on_progress):
        try:
            self._execute(game, depth, on_status, on_progress)
        except ReviewError:
            pass  # Recorded in self.error and self.status
        except Exception:
            traceback.print_exc()

    def _execute(self, game: ParsedGame, depth: int, on_status, on_progress) -> AnalysisResult:
        try:
            run = AnalysisRun(game.players, game.positions, depth, on_status, on_progress)
            self._set_status("Evaluating positions... (0.0%)", on_status)
            self._cloud_pass(run)
            self._local_pass(run)
            result = self._handoff(run)
        except ReviewError as e:
            self._fail(e, on_status)
            raise
        except Exception as e:
            self._fail(ReviewError(f"Analysis failed: {e}"), on_status)
            raise

        self._end(RunState.IDLE)
        return result


    def _fail(self, error: ReviewError, on_status):
        self.error = error
        self._set_status(str(error), on_status)
        self._end(RunState.FAILED)

    # ------------------------------------------------------------------
    # Status and progress
    # ------------------------------------------------------------------

    def _set_status(self, message: str, on_status: Optional[StatusCallback]):
        self.status = message
        if on_status:
            on_status(message)

    def _publish_progress(self, run: AnalysisRun, percent: float):
        self.progress = run.tracker.update(percent)
        self.status = f"Evaluating positions... ({self.progress:.1f}%)"
        if run.on_progress:
            run.on_progress(snapshot(run.positions, run.depth, self.progress))

    # ------------------------------------------------------------------
    # Cloud pass
    # ------------------------------------------------------------------

    def _cloud_pass(self, run: AnalysisRun):
        """Fill positions from the cloud in game order until the first miss."""
        if self.cloud is None:
            return

        total = len(run.positions)
        for position in run.positions:
            result = self.cloud.fetch(position.fen, run.depth)
            if not result.ok:
                break
            position.fill(result.lines, REMOTE_DONE)
            self._publish_progress(run, (position.index + 1) / total * 100)

    # ------------------------------------------------------------------
    # Local pass
    # ------------------------------------------------------------------

    def _local_pass(self, run: AnalysisRun):
        """Evaluate the remaining positions with at most `concurrency` workers."""
        if run.all_evaluated():
            return
        if self.worker_factory is None:
            raise WorkerError("No local engine configured")

        pool = WorkerPool(self.worker_factory, self.config.concurrency)
        try:
            while not run.all_evaluated():
                self._dispatch(run, pool)
                self._expire(run, pool)

                # Block for one tick at most, then drain whatever has finished
                completion = pool.next_completion(self.config.tick_interval)
                while completion is not None:
                    self._complete(run, pool, completion)
                    completion = pool.next_completion()

                self._publish_progress(run, compute_progress(run.positions, run.depth))
        finally:
            pool.shutdown()

    def _dispatch(self, run: AnalysisRun, pool: WorkerPool):
        """Start workers on unassigned positions, in game order, while slots are free."""
        for position in run.positions:
            if not pool.has_capacity:
                break
            if position.evaluated or not isinstance(position.source, Unassigned):
                continue
            worker = pool.dispatch(position.index, position.fen, run.depth)
            position.source = LocalHandle(worker)

    def _expire(self, run: AnalysisRun, pool: WorkerPool):
        timeout = self.config.worker_timeout
        for index, worker in pool.expired(timeout):
            pool.abandon(index, worker)
            self._worker_failed(run, run.positions[index],
                                TimeoutError(f"no result after {timeout:.0f}s"))

    def _complete(self, run: AnalysisRun, pool: WorkerPool, completion: Completion):
        if not pool.release(completion.index, completion.worker):
            return  # Worker was abandoned; its slot has moved on

        position = run.positions[completion.index]
        error = completion.future.exception()
        if error is None:
            lines = completion.future.result()
            if lines:
                position.fill(lines, LOCAL_DONE)
                return
            error = RuntimeError("engine returned no lines")

        self._worker_failed(run, position, error)

    def _worker_failed(self, run: AnalysisRun, position: Position, error: BaseException):
        """Put a position back up for dispatch, or fail the run once retries are spent."""
        failures = run.failures.get(position.index, 0) + 1
        run.failures[position.index] = failures
        print(f"  Error in worker for position {position.index}: {error}")

        if failures > self.config.max_worker_retries:
            raise WorkerError(
                f"Failed to evaluate position {position.index} after {failures} attempts"
            ) from error
        position.source = UNASSIGNED

    # ------------------------------------------------------------------
    # Hand-off
    # ------------------------------------------------------------------

    def _handoff(self, run: AnalysisRun) -> AnalysisResult:
        self.progress = run.tracker.finish()
        self._set_status("Evaluation complete.", run.on_status)
        if run.on_progress:
            run.on_progress(snapshot(run.positions, run.depth, self.progress))

        self._set_status("Generating report...", run.on_status)
        evaluated = [position.to_dict() for position in run.positions]
        report = generate_report(evaluated, self.report_builder)

        self.result = AnalysisResult(players=run.players, positions=run.positions, report=report)
        self._set_status("Analysis complete.", run.on_status)
        return self.result


def create_orchestrator(config: AnalysisConfig = None,
                        report_builder: ReportBuilder = evaluation_summary) -> Orchestrator:
    """Build an orchestrator wired to the configured cloud endpoint and local engine."""
    config = config or get_config()
    cloud = None
    if config.cloud_enabled:
        cloud = CloudClient(config.cloud_url, config.multi_pv, config.cloud_timeout)
    factory = make_worker_factory(config.engine_path, config.uci_options, config.multi_pv)
    return Orchestrator(config, cloud=cloud, worker_factory=factory, report_builder=report_builder)


# Process-wide orchestrator, so every caller sees the same run state and result
_default_orchestrator = None
_default_lock = threading.Lock()


def get_orchestrator() -> Orchestrator:
    """Get or create the shared orchestrator."""
    global _default_orchestrator
    with _default_lock:
        if _default_orchestrator is None:
            _default_orchestrator = create_orchestrator()
        return _default_orchestrator
