import pytest

from api_client import ApiError, SessionExpiredError
from data_integrator import delete_row, fetch_row, fetch_rows, insert_row, search_receipts, update_row


def test_unknown_resource(client):
    with pytest.raises(ValueError):
        fetch_rows(client, "customers")


def test_missing_id(client):
    with pytest.raises(ValueError):
        update_row(client, "products", "", {})


def test_fetch_rows(client):
    client.get.return_value = [{"_id": "m1"}]
    assert fetch_rows(client, "models") == (True, "Fetched", [{"_id": "m1"}])


def test_fetch_row_failure(client):
    client.get.side_effect = ApiError(404)
    ok, msg, data = fetch_row(client, "receipts", "r1")

    assert (ok, msg, data) == (False, "Failed to fetch receipt", None)


def test_insert_uses_backend_message(client):
    client.post.side_effect = ApiError(409, "Duplicate chassis number")
    assert insert_row(client, "receipts", {}) == (False, "Duplicate chassis number", None)


def test_delete_returns_id(client):
    assert delete_row(client, "products", "p1") == (True, "Deleted", "p1")


def test_search_empty(client):
    client.post.return_value = []
    assert search_receipts(client, {}) == (True, "No receipts found", [])


def test_session_expiry_not_swallowed(client):
    client.get.side_effect = SessionExpiredError()
    with pytest.raises(SessionExpiredError):
        fetch_rows(client, "products")
