import logging
from typing import Iterable, List, Sequence

from hopchain.errors import DuplicateSolve
from hopchain.hops import HopsClient
from hopchain.models import Hop, Solve
from hopchain.solves import SolveController

logger = logging.getLogger(__name__)

ASSOCIATION_SEPARATOR = "|"


def composite_key(owner_id: str, puzzle_id: str, hop_ids: Iterable[str]) -> str:
    """
    Fingerprint of a solved path: owner, puzzle and the hop ids sorted, so the same set of hops
    gives the same key however it was discovered.
    """
    return f"{owner_id}|{puzzle_id}|{','.join(sorted(hop_ids))}"


def merge_associations_keys(keys: Iterable[str]) -> str:
    """
    Union of '|'-delimited association tokens, keeping the order each token was first seen.
    """
    tokens = ASSOCIATION_SEPARATOR.join(keys).split(ASSOCIATION_SEPARATOR)
    return ASSOCIATION_SEPARATOR.join(dict.fromkeys(token for token in tokens if token))


class SolveFinalizer:
    def __init__(self, solves: SolveController, hops: HopsClient):
        self.solves = solves
        self.hops = hops

    def finalize(self, hops: Sequence[Hop], puzzle_id: str, attempt_id: str, owner_id: str) -> Solve:
        """
        Commit a completed attempt as a solve, once per distinct path.

        If the same owner already solved the puzzle with the same hops, the attempt's hop records
        are redundant: their deletion is requested (a failed delete is only logged) and
        DuplicateSolve is raised. Otherwise the solve is written with a conditional create, so a
        concurrent finalize of the same attempt fails with SolveConflict instead of overwriting.
        """
        hop_ids: List[str] = [hop.id for hop in hops]
        key = composite_key(owner_id, puzzle_id, hop_ids)

        existing = self.solves.get_by_composite_key(key)
        if existing is not None:
            logger.info("Attempt %s repeats solve %s, removing its hops", attempt_id, existing.id)
            try:
                self.hops.delete_hops(attempt_id)
            except Exception as e:
                logger.warning("Hop cleanup for attempt %s failed: %s", attempt_id, e)
            raise DuplicateSolve(key, existing_id=existing.id)

        solve = Solve(
            id=attempt_id,
            owner_id=owner_id,
            puzzle_id=puzzle_id,
            hop_ids=hop_ids,
            length=len(hops) - 1,
            associations_key=merge_associations_keys(hop.associations_key for hop in hops),
            composite_key=key,
        )
        return self.solves.create(solve)
