import time

import pytest
import requests

from conftest import FakeGames, FakeHops, make_hop

from hopchain.errors import DuplicateSolve, MissingContext, NoValidHops, UpstreamUnavailable
from hopchain.models import AttemptContext, Completed, Pending, Puzzle
from hopchain.orchestrator import HopAttemptOrchestrator

CONTEXT = AttemptContext(owner_id="owner123", puzzle_id="game-two", attempt_id="attempt789")


@pytest.mark.parametrize("missing", ["owner_id", "puzzle_id", "attempt_id"])
def test_missing_context_fails_before_any_call(orchestrator, hops, games, missing):
    context = CONTEXT.model_copy(update={missing: None})

    with pytest.raises(MissingContext, match="Missing required context"):
        orchestrator.attempt_hop("test", context)

    assert hops.listed == []
    assert hops.created == []
    assert games.fetched == []


def test_fetches_hops_and_puzzle_for_the_attempt(orchestrator, hops, games):
    hops.links[("start", "test")] = make_hop("hop1", "start::test")
    orchestrator.attempt_hop("test", CONTEXT)

    assert hops.listed == ["attempt789"]
    assert games.fetched == ["game-two"]


def test_no_accepted_links_is_no_valid_hops(orchestrator, hops):
    hops.existing = [make_hop("hop1", "start::middle", "assoc1")]

    with pytest.raises(NoValidHops, match="No valid hops found"):
        orchestrator.attempt_hop("invalid", CONTEXT)

    assert sorted(call[3] for call in hops.created) == ["end", "middle"]


def test_blank_word_is_rejected_without_calls(orchestrator, hops):
    with pytest.raises(NoValidHops):
        orchestrator.attempt_hop("   ", CONTEXT)
    assert hops.listed == []


def test_unsolved_attempt_returns_pending_state(orchestrator, hops, solves):
    hops.existing = [make_hop("hop1", "start::middle", "assoc1", created_at="2025-11-02T10:00:00Z")]
    hops.links[("middle", "destination")] = make_hop("hop2", "middle::destination", "assoc2")

    outcome = orchestrator.attempt_hop("destination", CONTEXT)

    assert isinstance(outcome, Pending)
    state = outcome.attempt
    assert state.id == "attempt789"
    assert state.owner_id == "owner123"
    assert state.puzzle_id == "game-two"
    assert state.hop_ids == ["hop1", "hop2"]
    assert state.associations_key == "assoc1|assoc2"
    assert state.open_edges == ["destination", "end"]
    assert state.created_at.isoformat().startswith("2025-11-02T10:00:00")
    assert solves.store.get("attempt789") is None


def test_every_open_edge_is_tried_and_all_successes_kept(orchestrator, hops):
    context = CONTEXT.model_copy(update={"puzzle_id": "game-three"})
    hops.links[("a", "test")] = make_hop("hop1", "a::test", "assoc1")
    hops.links[("c", "test")] = make_hop("hop2", "c::test", "assoc2")

    outcome = orchestrator.attempt_hop("test", context)

    assert sorted(call[3] for call in hops.created) == ["a", "b", "c"]
    assert all(call[:3] == ("attempt789", "owner123", "game-three") for call in hops.created)
    assert isinstance(outcome, Pending)
    assert outcome.attempt.hop_ids == ["hop1", "hop2"]
    assert outcome.attempt.associations_key == "assoc1|assoc2"
    assert outcome.attempt.open_edges == ["b"]


def test_a_failing_link_request_counts_as_rejected(orchestrator, hops):
    context = CONTEXT.model_copy(update={"puzzle_id": "game-three"})
    hops.links[("a", "test")] = requests.ConnectionError("reset")
    hops.links[("b", "test")] = make_hop("hop1", "b::test")

    outcome = orchestrator.attempt_hop("test", context)

    assert outcome.attempt.hop_ids == ["hop1"]


def test_closing_hop_completes_and_records_solve(orchestrator, hops, solves):
    hops.links[("start", "completingWord")] = make_hop(
        "hop1", "start::end", "assoc1", from_="start", to="completingWord"
    )

    outcome = orchestrator.attempt_hop("completingWord", CONTEXT)

    assert isinstance(outcome, Completed)
    solve = outcome.solve
    assert solve.id == "attempt789"
    assert solve.hop_ids == ["hop1"]
    assert solve.length == 0
    assert solve.associations_key == "assoc1"
    assert solve.composite_key == "owner123|game-two|hop1"
    assert solves.get_by_id("attempt789") == solve


def test_both_ends_meeting_on_one_word_solves(orchestrator, hops):
    hops.links[("start", "bridge")] = make_hop("hop1", "start::bridge", "s")
    hops.links[("end", "bridge")] = make_hop("hop2", "end::bridge", "e")

    outcome = orchestrator.attempt_hop("bridge", CONTEXT)

    assert isinstance(outcome, Completed)
    assert outcome.solve.hop_ids == ["hop1", "hop2"]
    assert outcome.solve.length == 1


def test_repeating_a_recorded_path_is_duplicate(orchestrator, hops):
    hops.links[("start", "bridge")] = make_hop("hop1", "start::end")
    orchestrator.attempt_hop("bridge", CONTEXT)

    with pytest.raises(DuplicateSolve):
        orchestrator.attempt_hop("bridge", CONTEXT.model_copy(update={"attempt_id": "again"}))
    assert hops.deleted == ["again"]


def test_puzzle_fetch_failure_is_fatal(orchestrator, hops):
    context = CONTEXT.model_copy(update={"puzzle_id": "missing"})
    with pytest.raises(UpstreamUnavailable):
        orchestrator.attempt_hop("test", context)
    assert hops.created == []


def test_link_requests_run_concurrently():
    class SlowHops(FakeHops):
        def create_hop(self, attempt_id, owner_id, puzzle_id, from_word, to_word):
            time.sleep(0.2)
            return make_hop(f"hop-{from_word}", f"{from_word}::{to_word}")

    words = [f"w{i}" for i in range(7)]
    hops = SlowHops()
    games = FakeGames([Puzzle(id="wide", words=words)])
    orchestrator = HopAttemptOrchestrator(hops, games, finalizer=None)

    started = time.monotonic()
    outcome = orchestrator.attempt_hop("hub", CONTEXT.model_copy(update={"puzzle_id": "wide"}))
    elapsed = time.monotonic() - started

    assert len(outcome.attempt.hop_ids) == 7
    assert elapsed < 0.2 * len(words)
