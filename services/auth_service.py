# services/auth_service.py
import logging
from typing import Optional, Tuple

from api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)


def _authenticate(client: ApiClient, path: str, email: str, password: str, fallback: str) -> Tuple[bool, str]:
    if not email or not password:
        return False, "Email and password are required"

    # A 401 here means bad credentials, not an expired session, so the
    # SessionExpiredError subclass is handled like any other failure.
    try:
        data = client.post(path, {"email": email, "password": password})
    except ApiError as e:
        logger.warning("Authentication against %s failed: %s", path, e)
        return False, e.message or fallback

    token = (data or {}).get("token")
    if not token:
        return False, "No token received"

    client.session.set_token(token)
    logger.info("Logged in as %s", email)
    return True, "Logged in"


def login(client: ApiClient, email: str, password: str) -> Tuple[bool, str]:
    """
    Returns (ok, message). On success the token is stored on the client's session.
    """
    return _authenticate(client, "/auth/login", email, password, "Login failed. Please try again.")


def register(client: ApiClient, email: str, password: str) -> Tuple[bool, str]:
    return _authenticate(client, "/auth/register", email, password, "Registration failed. Please try again.")


def logout(client: ApiClient) -> None:
    """
    Tell the backend, then end the session locally no matter what it said.
    """
    try:
        client.post("/auth/logout")
    except ApiError as e:
        logger.warning("Logout call failed, ending session anyway: %s", e)
    finally:
        client.session.invalidate()


def verify(client: ApiClient) -> Tuple[bool, Optional[dict]]:
    """
    Check the stored token is still accepted.
    A 401 invalidates the session inside the client.
    """
    if not client.session.is_authenticated:
        return False, None
    try:
        data = client.get("/auth/verify")
    except ApiError as e:
        logger.warning("Token verification failed: %s", e)
        return False, None
    return True, data
