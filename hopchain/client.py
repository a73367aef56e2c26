import requests
from typing import Any, Dict, Optional


class ServiceClient:
    """
    Thin wrapper around one of the sibling HTTP services (hops, games). Holds the base URL, the
    per-request timeout and the optional internal secret header those services require.
    """

    def __init__(self, api_url: str, timeout: float = 10,
                 secret_header: Optional[tuple[str, str]] = None,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.secret_header = secret_header
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.secret_header:
            name, value = self.secret_header
            headers[name] = value
        if extra:
            headers.update(extra)
        return headers

    def _make_api_request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                          json_body: Optional[Dict[str, Any]] = None,
                          headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """
        Send a request to the service and return the response once it has been checked for an
        error status. Timeouts and transport errors surface as requests.RequestException.
        """
        try:
            response = self.session.request(
                method,
                self._url(path),
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response
        except requests.Timeout:
            raise requests.RequestException(f"{method} {path} timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise requests.RequestException(f"Error making {method} {path} request: {e}")
