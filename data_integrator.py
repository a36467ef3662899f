import logging
from typing import Any, Dict, List, Optional, Tuple

from api_client import ApiClient, ApiError, SessionExpiredError

logger = logging.getLogger(__name__)

# collection path -> singular noun used in fallback messages
RESOURCES = {
    "products": "product",
    "models": "model",
    "batteries": "battery",
    "receipts": "receipt",
}


def _path(resource: str, row_id: Optional[str] = None) -> str:
    if resource not in RESOURCES:
        raise ValueError(f"Unknown resource: {resource}")
    if row_id is None:
        return f"/{resource}"
    if not row_id:
        raise ValueError(f"Missing id for {RESOURCES[resource]}")
    return f"/{resource}/{row_id}"


def _failure(action: str, resource: str, error: ApiError) -> str:
    """
    The backend's message if it sent one, otherwise "Failed to <action> <noun>".
    """
    noun = resource if action in ("fetch", "search") else RESOURCES[resource]
    message = error.message or f"Failed to {action} {noun}"
    logger.warning("%s %s failed (status=%s): %s", action, resource, error.status, message)
    return message


def fetch_rows(client: ApiClient, resource: str) -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    GET a whole collection.
    Returns (ok, message, rows)
    """
    try:
        data = client.get(_path(resource))
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure("fetch", resource, e), []

    if not data:
        return True, "No rows found", []
    return True, "Fetched", list(data)


def fetch_row(client: ApiClient, resource: str, row_id: str) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        data = client.get(_path(resource, row_id))
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure("fetch", RESOURCES[resource], e), None
    return True, "Fetched", data


def insert_row(client: ApiClient, resource: str, row: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    POST a single row (form-style).
    Returns (ok, message, inserted_row)
    """
    action = "generate" if resource == "receipts" else "create"
    try:
        data = client.post(_path(resource), row)
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure(action, resource, e), None

    logger.info("Inserted %s", RESOURCES[resource])
    return True, "Inserted", data


def update_row(
        client: ApiClient,
        resource: str,
        row_id: str,
        row: Dict[str, Any],
) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        data = client.put(_path(resource, row_id), row)
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure("update", resource, e), None

    logger.info("Updated %s %s", RESOURCES[resource], row_id)
    return True, "Updated", data


def delete_row(client: ApiClient, resource: str, row_id: str) -> Tuple[bool, str, Optional[str]]:
    """
    Returns (ok, message, deleted_id)
    """
    try:
        client.delete(_path(resource, row_id))
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure("delete", resource, e), None

    logger.info("Deleted %s %s", RESOURCES[resource], row_id)
    return True, "Deleted", row_id


def search_receipts(client: ApiClient, filters: Dict[str, str]) -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    POST /receipts/search with an already-sparse filter body.
    The result order is whatever the backend returns.
    """
    try:
        data = client.post("/receipts/search", filters)
    except SessionExpiredError:
        raise
    except ApiError as e:
        return False, _failure("search", "receipts", e), []

    if not data:
        return True, "No receipts found", []
    return True, "Fetched", list(data)
