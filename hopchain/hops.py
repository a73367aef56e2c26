import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from hopchain.client import ServiceClient
from hopchain.models import Hop

logger = logging.getLogger(__name__)


class HopsClient(ServiceClient):
    """
    Client for the hops service, which judges whether two words link and keeps the append-only
    record of accepted hops for each attempt. Failures here degrade instead of raising: a hop
    list that can't be read is empty, a hop that can't be created was not accepted, a delete
    that fails is only logged.
    """

    def list_hops(self, attempt_id: str) -> List[Hop]:
        """
        Fetch every hop recorded for an attempt, in the order the service returns them. A record
        that can't be read is skipped; only a failed fetch empties the history.
        """
        try:
            response = self._make_api_request("GET", "/hops", params={"attemptId": attempt_id})
            items = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Could not list hops for attempt %s, treating as none: %s", attempt_id, e)
            return []

        if not isinstance(items, list):
            logger.warning("Hop list for attempt %s is not a list, treating as none", attempt_id)
            return []

        hops = []
        for item in items:
            try:
                hops.append(Hop.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping unreadable hop for attempt %s: %s", attempt_id, e)
        return hops

    def create_hop(self, attempt_id: str, owner_id: str, puzzle_id: str,
                   from_word: str, to_word: str) -> Optional[Hop]:
        """
        Ask the service to link two words. Returns the accepted hop, or None if the service
        rejected the link or could not be reached.
        """
        headers = {
            "x-attempt-id": attempt_id,
            "x-game-id": puzzle_id,
            "x-owner-id": owner_id,
        }
        try:
            response = self._make_api_request(
                "POST", "/hops", json_body={"from": from_word, "to": to_word}, headers=headers
            )
            return Hop.model_validate(response.json())
        except requests.RequestException as e:
            logger.debug("Link %s -> %s rejected: %s", from_word, to_word, e)
            return None
        except (ValidationError, ValueError) as e:
            logger.warning("Unreadable hop for link %s -> %s: %s", from_word, to_word, e)
            return None

    def delete_hops(self, attempt_id: str) -> bool:
        try:
            self._make_api_request("DELETE", "/hops", params={"attemptId": attempt_id})
            return True
        except requests.RequestException as e:
            logger.warning("Could not delete hops for attempt %s: %s", attempt_id, e)
            return False
