# api_client.py
import logging
import os
from typing import Any, Callable, List, Optional

import requests
from dotenv import load_dotenv

load_dotenv()
API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:5000/api")
API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "30"))

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx answer (or no answer at all) from the REST backend."""

    def __init__(self, status: Optional[int], message: Optional[str] = None):
        self.status = status
        self.message = message  # the backend's own message, when it sent one
        super().__init__(message or (f"HTTP {status}" if status else "Request failed"))


class SessionExpiredError(ApiError):
    """The backend answered 401; the session has already been invalidated."""

    default_message = "Session expired, please log in again"

    def __init__(self, message: str = default_message):
        super().__init__(401, message)


class SessionContext:
    """
    Bearer token for one logged-in operator.

    Created once per UI session and handed to every ApiClient. `invalidate()`
    is the only place a session ends: it drops the token and tells whoever
    registered interest (the UI resets its volatile state there).
    """

    def __init__(self, token: Optional[str] = None, base_url: str = API_BASE_URL):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._listeners: List[Callable[[], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_token(self, token: str) -> None:
        self.token = token

    def on_invalidate(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def invalidate(self) -> None:
        if self.token:
            logger.info("Session invalidated")
        self.token = None
        for callback in list(self._listeners):
            callback()


class ApiClient:
    """JSON client for the dealership REST backend."""

    def __init__(self, session: SessionContext, timeout: float = API_TIMEOUT_SECONDS):
        self.session = session
        self.timeout = timeout
        self._http = requests.Session()
        self._http.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def _headers(self) -> dict:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    def _request(self, method: str, path: str, json_body: Any = None) -> Any:
        url = f"{self.session.base_url}{path}"
        try:
            resp = self._http.request(
                method,
                url,
                headers=self._headers(),
                json=json_body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(None) from e

        if resp.status_code == 401:
            logger.warning("%s %s -> 401, ending session", method, path)
            self.session.invalidate()
            raise SessionExpiredError(_error_message(resp) or SessionExpiredError.default_message)

        if not resp.ok:
            raise ApiError(resp.status_code, _error_message(resp))

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            # plain-text acknowledgements such as "Deleted"
            logger.info("%s %s -> %s with a non-JSON body, ignoring it", method, path, resp.status_code)
            return None

    def get(self, path: str) -> Any:
        return self._request("GET", path)

    def post(self, path: str, json_body: Any = None) -> Any:
        return self._request("POST", path, json_body)

    def put(self, path: str, json_body: Any = None) -> Any:
        return self._request("PUT", path, json_body)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)


def _error_message(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None
