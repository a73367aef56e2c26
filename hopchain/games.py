import requests
from pydantic import ValidationError

from hopchain.client import ServiceClient
from hopchain.errors import UpstreamUnavailable
from hopchain.models import Puzzle


class GamesClient(ServiceClient):
    def get_puzzle(self, puzzle_id: str) -> Puzzle:
        """
        Fetch a puzzle and its starting words. An attempt can't go anywhere without them, so any
        failure, including a body that doesn't describe a puzzle, raises UpstreamUnavailable.
        """
        try:
            response = self._make_api_request("GET", f"/games/{puzzle_id}")
            return Puzzle.model_validate(response.json())
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Could not fetch puzzle '{puzzle_id}': {e}") from e
        except (ValidationError, ValueError) as e:
            raise UpstreamUnavailable(f"Puzzle '{puzzle_id}' is malformed: {e}") from e
