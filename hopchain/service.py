import secrets
from dataclasses import dataclass
from typing import Optional

import requests

from hopchain.cache import ResultCache
from hopchain.config import Settings
from hopchain.finalizer import SolveFinalizer
from hopchain.games import GamesClient
from hopchain.hops import HopsClient
from hopchain.models import Attempt
from hopchain.orchestrator import HopAttemptOrchestrator
from hopchain.solves import SolveController, SolveStore

ATTEMPT_ID_PREFIX = "att_"


def new_attempt(puzzle_id: Optional[str] = None) -> Attempt:
    """
    Start an attempt. Nothing is stored: the id only scopes hop records at the hops service
    until the attempt is solved.
    """
    return Attempt(id=ATTEMPT_ID_PREFIX + secrets.token_urlsafe(18), puzzle_id=puzzle_id)


@dataclass
class Services:
    hops: HopsClient
    games: GamesClient
    solves: SolveController
    orchestrator: HopAttemptOrchestrator


def build_services(settings: Settings, store: Optional[SolveStore] = None) -> Services:
    session = requests.Session()
    hops = HopsClient(settings.hops_api_url, timeout=settings.http_timeout_s,
                      secret_header=settings.secret_header, session=session)
    games = GamesClient(settings.games_api_url, timeout=settings.http_timeout_s,
                        secret_header=settings.secret_header, session=session)

    cache = ResultCache(point_size=settings.solve_cache_size, query_size=settings.query_cache_size)
    solves = SolveController(store or SolveStore(settings.solve_db_path), cache)
    finalizer = SolveFinalizer(solves, hops)

    return Services(
        hops=hops,
        games=games,
        solves=solves,
        orchestrator=HopAttemptOrchestrator(hops, games, finalizer),
    )
