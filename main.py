import argparse

from hopchain.config import Settings, configure_logging
from hopchain.edges import compute_open_edges
from hopchain.errors import DuplicateSolve, NoValidHops
from hopchain.models import AttemptContext, Completed
from hopchain.service import build_services, new_attempt


def play_hop_chain(puzzle_id: str, owner_id: str, attempt_id: str | None = None) -> None:

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    services = build_services(settings)

    puzzle = services.games.get_puzzle(puzzle_id)
    attempt_id = attempt_id or new_attempt(puzzle_id).id
    context = AttemptContext(owner_id=owner_id, puzzle_id=puzzle_id, attempt_id=attempt_id)

    # An existing attempt may already have hops recorded
    edges = compute_open_edges(puzzle.words, services.hops.list_hops(attempt_id))

    print(f"\n Hop Chain: {' · '.join(puzzle.words)}")
    print(f"   Attempt: {attempt_id}")
    print("=" * 60)

    while True:
        print(f"\n Open words: {', '.join(edges)}")
        try:
            word = input(" Next word (blank to quit): ").strip()
        except EOFError:
            word = ""
        if not word:
            print("\nStopped. The attempt can be resumed with --attempt " + attempt_id)
            return

        try:
            outcome = services.orchestrator.attempt_hop(word, context)
        except NoValidHops:
            print(f"   '{word}' doesn't link to any open word")
            continue
        except DuplicateSolve:
            print("\nYou've already solved this puzzle with exactly these hops.")
            return

        if isinstance(outcome, Completed):
            solve = outcome.solve
            print(f"\nSolved in {len(solve.hop_ids)} hops!")
            print(f"   Associations: {solve.associations_key}")
            return

        edges = outcome.attempt.open_edges
        print(f"   Linked. {len(outcome.attempt.hop_ids)} hops so far")


def main():
    parser = argparse.ArgumentParser(description="Play a hop chain puzzle from the terminal.")
    parser.add_argument("puzzle_id")
    parser.add_argument("--owner", default="local-player")
    parser.add_argument("--attempt", default=None, help="resume an existing attempt id")
    args = parser.parse_args()

    play_hop_chain(args.puzzle_id, args.owner, args.attempt)


if __name__ == "__main__":
    main()
