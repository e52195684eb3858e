"""Shared fakes for review tests: engine workers, cloud lookups and games."""

import threading
import time
from concurrent.futures import Future

import chess
import chess.pgn
import pytest

import review.orchestrator as orchestrator_module
from review.cloud import CloudError, CloudResult
from review.models import EngineLine, Evaluation


def make_lines(depth: int = 16) -> list[EngineLine]:
    return [
        EngineLine(id=1, depth=depth, move_uci="e2e4", evaluation=Evaluation("cp", 30)),
        EngineLine(id=2, depth=depth, move_uci="d2d4", evaluation=Evaluation("cp", 25)),
    ]


def pgn_with_plies(plies: int) -> str:
    """A legal game of knight shuffles, giving plies + 1 positions."""
    shuffle = ["Nf3", "Nf6", "Ng1", "Ng8"]
    board = chess.Board()
    for i in range(plies):
        board.push_san(shuffle[i % 4])
    game = chess.pgn.Game.from_board(board)
    game.headers["White"] = "alice"
    game.headers["Black"] = "bob"
    return str(game)


class FakeWorker:
    """
    Stand-in for EngineWorker.

    behaviour:
        "instant" - resolve with two lines as soon as started
        "hold"    - stay running until resolve()/fail() is called
        Exception - fail immediately with that exception
    """

    def __init__(self, behaviour="instant"):
        self.behaviour = behaviour
        self.future = Future()
        self.started_at = None
        self.depth = 0
        self.fen = None
        self.target_depth = None
        self.stopped = False
        self._resolve_on_start = False
        self._lock = threading.Lock()

    def start(self, fen, target_depth):
        with self._lock:
            self.fen = fen
            self.target_depth = target_depth
            self.started_at = time.time()
            resolve = self._resolve_on_start or self.behaviour == "instant"
        if isinstance(self.behaviour, BaseException):
            self.future.set_exception(self.behaviour)
        elif resolve:
            self.resolve()
        return self.future

    def resolve(self, lines=None):
        with self._lock:
            if self.target_depth is None:
                # Not started yet; finish as soon as it is
                self._resolve_on_start = True
                return
            self.depth = self.target_depth
        self.future.set_result(make_lines(self.target_depth) if lines is None else lines)

    def fail(self, error):
        self.future.set_exception(error)

    def stop(self):
        self.stopped = True


class FakeWorkerFactory:
    """Creates FakeWorkers and remembers them in creation order."""

    def __init__(self, behaviour="instant"):
        self.behaviour = behaviour
        self.workers: list[FakeWorker] = []
        self.lock = threading.Lock()

    def __call__(self):
        with self.lock:
            behaviour = self.behaviour
            if callable(behaviour):
                behaviour = behaviour(len(self.workers))
            worker = FakeWorker(behaviour)
            self.workers.append(worker)
            return worker

    def set_behaviour(self, behaviour):
        with self.lock:
            self.behaviour = behaviour

    def created(self) -> list[FakeWorker]:
        with self.lock:
            return list(self.workers)

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if len(self.created()) >= count:
                return True
            time.sleep(0.005)
        return False

    def resolve_pending(self):
        for worker in self.created():
            if not worker.future.done() and not worker.stopped:
                worker.resolve()


class FakeCloud:
    """Cloud client that answers the first `hits` lookups and misses the rest."""

    def __init__(self, hits: int = 0, error: CloudError = CloudError.NOT_FOUND):
        self.hits = hits
        self.error = error
        self.calls: list[str] = []

    def fetch(self, fen, depth):
        self.calls.append(fen)
        if len(self.calls) <= self.hits:
            return CloudResult(lines=make_lines(depth))
        return CloudResult(error=self.error)


@pytest.fixture
def worker_factory():
    return FakeWorkerFactory()


@pytest.fixture
def lines():
    return make_lines


@pytest.fixture
def short_pgn():
    """1. e4 e5 - three positions."""
    return '[White "alice"]\n[Black "bob"]\n[WhiteElo "1500"]\n\n1. e4 e5 *\n'


@pytest.fixture
def fake_worker():
    return FakeWorker


@pytest.fixture
def fake_cloud():
    return FakeCloud


@pytest.fixture
def game_pgn():
    return pgn_with_plies


@pytest.fixture(autouse=True)
def no_active_review(monkeypatch):
    """Every test starts with no review running anywhere in the process."""
    monkeypatch.setattr(orchestrator_module, '_active_run', None)
