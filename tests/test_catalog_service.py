"""Tests for the catalog store."""

import pytest

from api_client import ApiError, SessionExpiredError
from domain.models import Battery, Model, ModelValidationError
from fixtures import make_product, product_row
from services.catalog_service import CatalogStore, product_patch_payload
from services.error_state import ErrorSlot


@pytest.fixture
def store(client, clock):
    return CatalogStore(client, ErrorSlot(clock=clock))


class TestListing:
    def test_list_products(self, client, store):
        client.get.return_value = [product_row("p1"), product_row("p2", model_name="Other")]

        assert store.list_products()

        client.get.assert_called_once_with("/products")
        assert [p.id for p in store.products] == ["p1", "p2"]
        assert store.loading is False

    def test_empty_collection(self, client, store):
        client.get.return_value = None
        assert store.list_models()
        assert store.models == []

    def test_failure_keeps_previous_rows(self, client, store):
        client.get.return_value = [product_row("p1")]
        store.list_products()
        client.get.side_effect = ApiError(500)

        assert not store.list_products()
        assert store.error.message == "Failed to fetch products"
        assert [p.id for p in store.products] == ["p1"]

    def test_malformed_row_reported(self, client, store):
        client.get.return_value = [{"name": "x", "unexpected": 1}]

        assert not store.list_batteries()
        assert "Unexpected batteries data" in store.error.message

    def test_refresh_all_hits_every_collection(self, client, store):
        store.refresh_all()
        paths = [call.args[0] for call in client.get.call_args_list]
        assert paths == ["/products", "/models", "/batteries"]


class TestWrites:
    def test_create_relists(self, client, store):
        client.get.return_value = [product_row("p-new")]
        product = make_product()

        assert store.create_product(product)

        client.post.assert_called_once_with("/products", product.to_payload(with_id=False))
        client.get.assert_called_once_with("/products")
        assert [p.id for p in store.products] == ["p-new"]

    def test_create_failure_message(self, client, store):
        client.post.side_effect = ApiError(422)

        assert not store.create_model(Model(name="Zippy"))
        assert store.error.message == "Failed to create model"
        client.get.assert_not_called()

    def test_delete_relists(self, client, store):
        assert store.delete_battery("b1")

        client.delete.assert_called_once_with("/batteries/b1")
        client.get.assert_called_once_with("/batteries")

    def test_update_stock_replaces_local_record(self, client, store):
        client.get.return_value = [product_row("p1", qty=10)]
        store.list_products()
        client.put.return_value = product_row("p1", qty=3)

        assert store.update_stock(store.products[0], 3)

        client.put.assert_called_once_with("/products/p1", {"availableQuantity": 3})
        assert store.products[0].available_quantity == 3

    def test_update_stock_rejects_negative(self, client, store):
        assert not store.update_stock(make_product(product_id="p1"), -2)
        assert "negative" in store.error.message
        client.put.assert_not_called()

    def test_update_without_echo_relists(self, client, store):
        client.put.return_value = None
        assert store.update_battery("b1", Battery(name="Li-72", capacity="72V"))
        client.get.assert_called_once_with("/batteries")

    def test_session_expiry_propagates(self, client, store):
        client.delete.side_effect = SessionExpiredError()
        with pytest.raises(SessionExpiredError):
            store.delete_product("p1")


class TestPatchPayload:
    def test_wire_keys(self):
        assert product_patch_payload({"rate": 45000, "range_km": 90}) == {"rate": 45000, "range": 90}

    def test_unknown_field(self):
        with pytest.raises(ModelValidationError):
            product_patch_payload({"model": "x"})

    def test_rate_must_be_positive(self):
        with pytest.raises(ModelValidationError):
            product_patch_payload({"rate": 0})


def test_lookups(client, store):
    store.models = [Model(name="Zippy", id="m1")]
    store.batteries = [Battery(name="Li-60", id="b1")]
    store.products = [make_product(product_id="p1")]

    assert store.find_model("Zippy").id == "m1"
    assert store.find_battery("b1").name == "Li-60"
    assert store.find_product("p1") is store.products[0]
    assert store.find_model("missing") is None


def test_error_clears_after_five_seconds(client, store, clock):
    client.get.side_effect = ApiError(500)
    store.list_models()

    clock.advance(4)
    assert store.error.message == "Failed to fetch models"
    clock.advance(1)
    assert store.error.message is None
