"""
Local engine worker: one UCI engine process evaluating one position.
"""

import subprocess
import threading
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Callable

import chess
import chess.engine

from review.constants import CLOUD_MULTI_PV
from review.engine_manager import resolve_engine_command
from review.errors import WorkerError
from review.models import EngineLine, Evaluation


class EngineWorker:
    """
    Evaluates a single position at increasing depth on a background thread.

    `depth` can be read at any time while the search runs and never goes
    down. `start()` returns a Future that resolves once, with the ranked
    lines at the deepest completed iteration, or with the exception that
    ended the search.
    """

    def __init__(self, command: Path | str | list, uci_options: dict = None,
                 multi_pv: int = CLOUD_MULTI_PV):
        self.command = command
        self.uci_options = uci_options or {}
        self.multi_pv = multi_pv
        self.future: Future = Future()
        self.started_at: float | None = None
        self._depth = 0
        self._engine = None
        self._stopped = False
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def depth(self) -> int:
        with self._lock:
            return self._depth

    def _raise_depth(self, depth: int):
        with self._lock:
            if depth > self._depth:
                self._depth = depth

    def start(self, fen: str, target_depth: int) -> Future:
        """Launch the search. A worker can only be started once."""
        if self._thread is not None:
            raise RuntimeError("Worker already started")
        self.started_at = time.time()
        self._thread = threading.Thread(
            target=self._run, args=(fen, target_depth), daemon=True
        )
        self._thread.start()
        return self.future

    def stop(self):
        """Abandon the search and close the engine process."""
        with self._lock:
            self._stopped = True
            engine = self._engine
        if engine is not None:
            engine.close()

    def _run(self, fen: str, target_depth: int):
        try:
            lines = self.evaluate(fen, target_depth)
        except Exception as e:
            self.future.set_exception(e)
        else:
            self.future.set_result(lines)

    def evaluate(self, fen: str, target_depth: int) -> list[EngineLine]:
        """
        Run the engine to `target_depth` and return the ranked lines.

        Positions without legal moves are answered without starting the
        engine: mate 0 for checkmate, 0 cp for stalemate.
        """
        board = chess.Board(fen)

        if not any(board.legal_moves):
            evaluation = Evaluation(type="mate", value=0) if board.is_checkmate() \
                else Evaluation(type="cp", value=0)
            self._raise_depth(target_depth)
            return [EngineLine(id=1, depth=target_depth, move_uci="", evaluation=evaluation)]

        # popen_uci accepts either a string or a list of arguments
        cmd = self.command if isinstance(self.command, list) else str(self.command)
        engine = chess.engine.SimpleEngine.popen_uci(cmd, stderr=subprocess.DEVNULL)
        with self._lock:
            self._engine = engine
            stopped = self._stopped

        lines: dict[int, EngineLine] = {}
        try:
            if stopped:
                raise RuntimeError("Worker stopped before search started")
            if self.uci_options:
                engine.configure(self.uci_options)

            limit = chess.engine.Limit(depth=target_depth)
            with engine.analysis(board, limit, multipv=self.multi_pv) as analysis:
                for info in analysis:
                    depth = info.get("depth")
                    pv = info.get("pv")
                    score = info.get("score")
                    if depth is None or not pv or score is None:
                        continue

                    rank = info.get("multipv", 1)
                    lines[rank] = EngineLine(
                        id=rank,
                        depth=depth,
                        move_uci=pv[0].uci(),
                        evaluation=Evaluation.from_score(score.white()),
                    )
                    if rank == 1:
                        self._raise_depth(depth)
        finally:
            if self._stopped:
                engine.close()
            else:
                engine.quit()

        if not lines:
            raise RuntimeError(f"Engine returned no lines for {fen}")

        final_depth = max(line.depth for line in lines.values())
        return sorted(
            (line for line in lines.values() if line.depth == final_depth),
            key=lambda line: line.id
        )


def make_worker_factory(engine_path: str | None = None, uci_options: dict = None,
                        multi_pv: int = CLOUD_MULTI_PV) -> Callable[[], EngineWorker]:
    """
    Return a callable that creates a fresh worker for each dispatched position.

    The engine binary is located on first use, so runs fully covered by the
    cloud pass never need a local engine.
    """
    command = None

    def factory() -> EngineWorker:
        nonlocal command
        if command is None:
            try:
                command = resolve_engine_command(engine_path)
            except FileNotFoundError as e:
                raise WorkerError(str(e)) from e
        return EngineWorker(command, uci_options=uci_options, multi_pv=multi_pv)

    return factory
