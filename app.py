import logging
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Header, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hopchain.config import Settings, configure_logging
from hopchain.errors import (
    DuplicateSolve,
    HopChainError,
    MissingContext,
    NoValidHops,
    SolveConflict,
    UpstreamUnavailable,
)
from hopchain.models import AttemptContext, SolveQuery
from hopchain.service import Services, build_services, new_attempt

logger = logging.getLogger(__name__)


# -----------------------------
# API Models
# -----------------------------
class AttemptRequest(BaseModel):
    puzzle_id: Optional[str] = None

class HopRequest(BaseModel):
    word: str


# -----------------------------
# Error mapping
# -----------------------------
ERROR_STATUS = {
    MissingContext: 400,
    NoValidHops: 422,
    DuplicateSolve: 409,
    SolveConflict: 409,
    UpstreamUnavailable: 502,
}

def failure(e: HopChainError) -> JSONResponse:
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(e, cls)), 500)
    return JSONResponse({"failure_reason": str(e)}, status_code=status)


# -----------------------------
# API
# -----------------------------
def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the HTTP app. Without explicit services they are built from the environment on the
    first request, so importing this module doesn't need the service URLs to be set.
    """
    app = FastAPI(title="hopchain")
    state: Dict[str, Any] = {"services": services}

    def get_services() -> Services:
        if state["services"] is None:
            settings = Settings.from_env()
            configure_logging(settings.log_level)
            state["services"] = build_services(settings)
        return state["services"]

    def run(action: Callable[[], Any]):
        try:
            return action()
        except HopChainError as e:
            logger.info("Request failed: %s", e)
            return failure(e)

    @app.post("/api/attempts")
    def api_create_attempt(req: AttemptRequest):
        return new_attempt(req.puzzle_id).to_wire()

    @app.post("/api/hop")
    def api_hop(
        req: HopRequest,
        x_user_id: Optional[str] = Header(default=None),
        x_game_id: Optional[str] = Header(default=None),
        x_attempt_id: Optional[str] = Header(default=None),
    ):
        context = AttemptContext(owner_id=x_user_id, puzzle_id=x_game_id, attempt_id=x_attempt_id)
        return run(lambda: get_services().orchestrator.attempt_hop(req.word, context).to_wire())

    @app.get("/api/solves/{solve_id}")
    def api_solve(solve_id: str):
        solve = get_services().solves.get_by_id(solve_id)
        if solve is None:
            return JSONResponse({"failure_reason": f"Solve '{solve_id}' not found"}, status_code=404)
        return solve.to_wire()

    @app.get("/api/solves")
    def api_solves(
        owner_id: Optional[str] = Query(default=None, alias="ownerId"),
        puzzle_id: Optional[str] = Query(default=None, alias="puzzleId"),
        associations_key: Optional[str] = Query(default=None, alias="associationsKey"),
    ):
        query = SolveQuery(owner_id=owner_id, puzzle_id=puzzle_id, associations_key=associations_key)
        return [solve.to_wire() for solve in get_services().solves.query(query)]

    return app


app = create_app()
