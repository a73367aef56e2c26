import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import List, Optional

from hopchain.edges import compute_open_edges
from hopchain.errors import MissingContext, NoValidHops
from hopchain.finalizer import SolveFinalizer, merge_associations_keys
from hopchain.games import GamesClient
from hopchain.hops import HopsClient
from hopchain.models import AttemptContext, AttemptState, Completed, Hop, HopOutcome, Pending, utcnow

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class HopAttemptOrchestrator:
    """
    Drives one hop attempt: rebuild the attempt from the hops service, try the candidate word
    against every open endpoint at once, fold in whatever links were accepted, then either hand
    back the still-open attempt or commit the solve.

    Nothing about the attempt is trusted from the caller beyond its identifiers; the hop history
    is re-read on every call. No lock is held across the calls, so two attempts racing on the same
    id can both reach the finalizer, where the composite key check and the store's conditional
    write decide which one records the solve.
    """

    def __init__(self, hops: HopsClient, games: GamesClient, finalizer: SolveFinalizer,
                 max_workers: Optional[int] = None):
        self.hops = hops
        self.games = games
        self.finalizer = finalizer
        self.max_workers = max_workers

    def attempt_hop(self, word: str, context: AttemptContext) -> HopOutcome:
        missing = context.missing()
        if missing:
            raise MissingContext(missing)

        word = (word or "").strip()
        if not word:
            raise NoValidHops(word)

        owner_id, puzzle_id, attempt_id = context.owner_id, context.puzzle_id, context.attempt_id

        prior_hops = self.hops.list_hops(attempt_id)
        puzzle = self.games.get_puzzle(puzzle_id)

        edges = compute_open_edges(puzzle.words, prior_hops)
        new_hops = self._link_all(word, edges, context)
        if not new_hops:
            raise NoValidHops(word)

        hops = prior_hops + new_hops
        open_edges = compute_open_edges(puzzle.words, hops)

        if open_edges:
            timestamps = [ts for ts in (_parse_timestamp(hop.created_at) for hop in hops) if ts]
            now = utcnow()
            return Pending(attempt=AttemptState(
                id=attempt_id,
                owner_id=owner_id,
                puzzle_id=puzzle_id,
                hop_ids=[hop.id for hop in hops],
                associations_key=merge_associations_keys(hop.associations_key for hop in hops),
                open_edges=open_edges,
                created_at=min(timestamps) if timestamps else now,
                updated_at=now,
            ))

        logger.info("Attempt %s closed puzzle %s in %d hops", attempt_id, puzzle_id, len(hops))
        return Completed(solve=self.finalizer.finalize(hops, puzzle_id, attempt_id, owner_id))

    def _link_all(self, word: str, edges: List[str], context: AttemptContext) -> List[Hop]:
        """
        Ask the hops service to link every open endpoint to the word, all at once, and wait for
        every request to settle. Any number of links may be accepted; a request that raises counts
        as a rejected link. Accepted hops come back in endpoint order.
        """
        if not edges:
            return []

        workers = self.max_workers or len(edges)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(
                    self.hops.create_hop,
                    context.attempt_id, context.owner_id, context.puzzle_id, edge, word,
                )
                for edge in edges
            ]
            wait(futures)

        accepted: List[Hop] = []
        for edge, future in zip(edges, futures):
            error = future.exception()
            if error is not None:
                logger.warning("Linking %s -> %s failed: %s", edge, word, error)
                continue
            hop = future.result()
            if hop is not None:
                accepted.append(hop)

        logger.debug("'%s' linked to %d of %d open endpoints", word, len(accepted), len(edges))
        return accepted
