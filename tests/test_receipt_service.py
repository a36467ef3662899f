"""Tests for receipt assembly and the receipt store."""

from datetime import datetime
from decimal import Decimal

import pytest

from api_client import ApiError, SessionExpiredError
from domain.models import CartLineItem, Receipt, UnitDetail
from fixtures import make_product, receipt_row
from services.receipt_service import (
    ReceiptBuildError,
    ReceiptStore,
    blank_unit_details,
    build_receipt,
    build_receipt_items,
    expand_units,
)


@pytest.fixture
def mixed_cart():
    return [
        CartLineItem(product=make_product(model_name="A", rate=40000, product_id="a"), quantity=2),
        CartLineItem(product=make_product(model_name="B", rate=60000, product_id="b"), quantity=1),
    ]


def details(n):
    return [UnitDetail(chassis_number=f"CH-{i}", color="Blue") for i in range(n)]


# =============================================================================
# Assembly
# =============================================================================


class TestBuildItems:
    def test_expand_units_in_cart_order(self, mixed_cart):
        assert [p.model.name for p in expand_units(mixed_cart)] == ["A", "A", "B"]

    def test_one_item_per_unit(self, mixed_cart):
        items = build_receipt_items(mixed_cart, details(3))

        assert len(items) == 3
        assert [i.chassis_number for i in items] == ["CH-0", "CH-1", "CH-2"]
        assert all(i.quantity == 1 for i in items)
        assert [i.amount for i in items] == [Decimal("40000"), Decimal("40000"), Decimal("60000")]

    def test_detail_count_must_match(self, mixed_cart):
        with pytest.raises(ReceiptBuildError):
            build_receipt_items(mixed_cart, details(2))

    def test_blank_serials_pass_through(self, mixed_cart):
        items = build_receipt_items(mixed_cart, [UnitDetail()] * 3)
        assert items[0].battery_number == ""


class TestBuildReceipt:
    def test_fields(self, customer, two_unit_cart, cart_total):
        receipt = build_receipt(
            customer=customer,
            items=two_unit_cart,
            total=cart_total,
            accessories=True,
            special_discount=0,
            unit_details=details(2),
            now=datetime(2024, 3, 15, 18, 30),
            receipt_number="EV-1",
        )

        assert receipt.receipt_number == "EV-1"
        assert receipt.date == "2024-03-15"
        assert receipt.unit_count == 2
        assert receipt.calculation.total_amount == Decimal("120360")
        assert receipt.final_amount == Decimal("120360")

    def test_operator_final_amount_kept(self, customer, two_unit_cart, cart_total):
        receipt = build_receipt(customer, two_unit_cart, cart_total, False, 0, details(2), final_amount=117999)

        assert receipt.final_amount == Decimal("117999")
        assert receipt.calculation.total_amount == Decimal("118000")
        assert receipt.receipt_number.startswith("EV-")

    def test_empty_cart_rejected(self, customer):
        with pytest.raises(ReceiptBuildError, match="empty"):
            build_receipt(customer, [], 0, False, 0, [])

    def test_non_numeric_final_amount(self, customer, two_unit_cart, cart_total):
        with pytest.raises(ReceiptBuildError):
            build_receipt(customer, two_unit_cart, cart_total, False, 0, details(2), final_amount="lots")


def test_blank_unit_details_keeps_typed_values(mixed_cart):
    previous = [UnitDetail(chassis_number="KEEP")]
    result = blank_unit_details(mixed_cart, previous)

    assert len(result) == 3
    assert result[0].chassis_number == "KEEP"
    assert result[2] == UnitDetail()


# =============================================================================
# Store
# =============================================================================


@pytest.fixture
def receipt(customer, two_unit_cart, cart_total):
    return build_receipt(customer, two_unit_cart, cart_total, False, 0, details(2), receipt_number="EV-42")


class TestGenerate:
    def test_posts_payload_and_becomes_current(self, client, receipt):
        store = ReceiptStore(client)

        assert store.generate(receipt)

        client.post.assert_called_once_with("/receipts", receipt.to_payload())
        assert store.current_receipt is receipt
        assert store.receipts == [receipt]
        assert not store.submitting

    def test_uses_backend_echo(self, client, receipt):
        client.post.return_value = receipt_row(receipt_id="srv-1")
        store = ReceiptStore(client)

        store.generate(receipt)

        assert store.current_receipt.id == "srv-1"

    def test_failure_sets_error(self, client, receipt):
        client.post.side_effect = ApiError(500)
        store = ReceiptStore(client)

        assert not store.generate(receipt)
        assert store.error.message == "Failed to generate receipt"
        assert store.current_receipt is None

    def test_backend_message_preferred(self, client, receipt):
        client.post.side_effect = ApiError(400, "Chassis number already used")
        store = ReceiptStore(client)

        store.generate(receipt)

        assert store.error.message == "Chassis number already used"

    def test_second_submit_while_pending_refused(self, client, receipt):
        store = ReceiptStore(client)
        nested = []

        def post(path, body):
            nested.append(store.generate(receipt))
            return None

        client.post.side_effect = post

        assert store.generate(receipt)
        assert nested == [False]
        assert client.post.call_count == 1

    def test_same_receipt_number_posted_once(self, client, receipt):
        store = ReceiptStore(client)

        assert store.generate(receipt)
        # a rerun of the page resubmits the pending receipt
        assert store.generate(receipt)

        client.post.assert_called_once()
        assert store.receipts == [receipt]

    def test_failed_post_can_be_retried(self, client, receipt):
        client.post.side_effect = [ApiError(502), None]
        store = ReceiptStore(client)

        assert not store.generate(receipt)
        assert store.generate(receipt)
        assert client.post.call_count == 2

    def test_session_expiry_propagates_and_releases(self, client, receipt):
        client.post.side_effect = SessionExpiredError()
        store = ReceiptStore(client)

        with pytest.raises(SessionExpiredError):
            store.generate(receipt)
        assert not store.submitting
        assert not store.loading


class TestReadAndDelete:
    def test_fetch_receipts_skips_malformed(self, client):
        client.get.return_value = [receipt_row(), {"receiptNumber": "broken"}]
        store = ReceiptStore(client)

        assert store.fetch_receipts()

        assert [r.id for r in store.receipts] == ["r1"]
        assert store.error.message.startswith("Malformed receipt")

    def test_fetch_receipt_sets_current(self, client):
        client.get.return_value = receipt_row(receipt_id="r7")
        store = ReceiptStore(client)

        assert store.fetch_receipt("r7")

        client.get.assert_called_once_with("/receipts/r7")
        assert store.current_receipt.id == "r7"

    def test_update_receipt_replaces_local_copies(self, client):
        client.get.return_value = receipt_row(receipt_id="r7")
        store = ReceiptStore(client)
        store.fetch_receipt("r7")
        store.receipts = [store.current_receipt]
        edited = store.current_receipt
        edited.customer.phone = "9000000000"
        client.put.return_value = receipt_row(receipt_id="r7", phone="9000000000")

        assert store.update_receipt("r7", edited)

        client.put.assert_called_once_with("/receipts/r7", edited.to_payload())
        assert store.current_receipt.customer.phone == "9000000000"
        assert [r.customer.phone for r in store.receipts] == ["9000000000"]

    def test_update_receipt_failure(self, client):
        client.put.side_effect = ApiError(404)
        store = ReceiptStore(client)

        assert not store.update_receipt("r7", Receipt.from_dict(receipt_row(receipt_id="r7")))
        assert store.error.message == "Failed to update receipt"

    def test_delete_drops_current(self, client):
        client.get.return_value = receipt_row(receipt_id="r7")
        store = ReceiptStore(client)
        store.fetch_receipt("r7")
        store.receipts = [store.current_receipt]

        assert store.delete_receipt("r7")

        client.delete.assert_called_once_with("/receipts/r7")
        assert store.current_receipt is None
        assert store.receipts == []
