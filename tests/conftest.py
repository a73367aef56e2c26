import threading

import pytest

from hopchain.cache import ResultCache
from hopchain.errors import UpstreamUnavailable
from hopchain.finalizer import SolveFinalizer
from hopchain.models import Hop, Puzzle
from hopchain.orchestrator import HopAttemptOrchestrator
from hopchain.solves import SolveController, SolveStore


def make_hop(hop_id, link_key, associations_key="", from_=None, to=None, created_at=None):
    first, _, second = link_key.partition("::")
    return Hop(
        id=hop_id,
        from_=from_ if from_ is not None else first,
        to=to if to is not None else second,
        link_key=link_key,
        associations_key=associations_key,
        created_at=created_at,
    )


class FakeHops:
    """
    Stands in for the hops service. `links` maps (from_word, to_word) to the hop the service
    would accept, or to an exception to raise; anything else is rejected.
    """

    def __init__(self, existing=None, links=None):
        self.existing = list(existing or [])
        self.links = dict(links or {})
        self.listed = []
        self.created = []
        self.deleted = []
        self.delete_error = None
        self._lock = threading.Lock()

    def list_hops(self, attempt_id):
        self.listed.append(attempt_id)
        return list(self.existing)

    def create_hop(self, attempt_id, owner_id, puzzle_id, from_word, to_word):
        with self._lock:
            self.created.append((attempt_id, owner_id, puzzle_id, from_word, to_word))
        result = self.links.get((from_word, to_word))
        if isinstance(result, Exception):
            raise result
        return result

    def delete_hops(self, attempt_id):
        self.deleted.append(attempt_id)
        if self.delete_error is not None:
            raise self.delete_error
        return True


class FakeGames:
    def __init__(self, puzzles=None):
        self.puzzles = {puzzle.id: puzzle for puzzle in (puzzles or [])}
        self.fetched = []

    def get_puzzle(self, puzzle_id):
        self.fetched.append(puzzle_id)
        if puzzle_id not in self.puzzles:
            raise UpstreamUnavailable(f"Could not fetch puzzle '{puzzle_id}'")
        return self.puzzles[puzzle_id]


@pytest.fixture
def solves():
    return SolveController(SolveStore(), ResultCache())


@pytest.fixture
def hops():
    return FakeHops()


@pytest.fixture
def games():
    return FakeGames([
        Puzzle(id="game-two", words=["start", "end"]),
        Puzzle(id="game-three", words=["a", "b", "c"]),
    ])


@pytest.fixture
def finalizer(solves, hops):
    return SolveFinalizer(solves, hops)


@pytest.fixture
def orchestrator(hops, games, finalizer):
    return HopAttemptOrchestrator(hops, games, finalizer)
