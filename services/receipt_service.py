# services/receipt_service.py

import logging
import threading
from datetime import datetime
from typing import List, Optional, Sequence

from api_client import ApiClient
from data_integrator import delete_row, fetch_row, fetch_rows, insert_row, update_row
from domain.models import (
    CartLineItem,
    CustomerDetails,
    ModelValidationError,
    Product,
    Receipt,
    ReceiptItem,
    UnitDetail,
)
from services.error_state import ErrorSlot
from services.invoice_service import calculate_invoice, generate_receipt_number
from utils.formatting import to_money

logger = logging.getLogger(__name__)


class ReceiptBuildError(ValueError):
    """Cart and per-unit details do not line up."""


def expand_units(items: Sequence[CartLineItem]) -> List[Product]:
    """
    One entry per physical unit, in cart order: a line with quantity 3
    contributes its product three times.
    """
    result = []
    for line in items:
        for _ in range(line.quantity):
            result.append(line.product)
    return result


def build_receipt_items(
        items: Sequence[CartLineItem],
        unit_details: Sequence[UnitDetail],
) -> List[ReceiptItem]:
    """
    Pair flattened unit i with unit_details[i].

    Serial numbers are passed through as typed; a blank stays "" and is
    left for the backend to fill if it wants to.
    """
    units = expand_units(items)
    if len(unit_details) != len(units):
        raise ReceiptBuildError(
            f"Expected details for {len(units)} unit(s), got {len(unit_details)}"
        )

    receipt_items = []
    for product, detail in zip(units, unit_details):
        receipt_items.append(
            ReceiptItem(
                model=product.model,
                battery=product.battery,
                range_km=product.range_km,
                rate=product.rate,
                amount=product.rate * 1,
                color=detail.color,
                hsn_code=detail.hsn_code,
                battery_number=detail.battery_number,
                charger_number=detail.charger_number,
                chassis_number=detail.chassis_number,
                quantity=1,
                product=product,
            )
        )
    return receipt_items


def build_receipt(
        customer: CustomerDetails,
        items: Sequence[CartLineItem],
        total,
        accessories: bool,
        special_discount,
        unit_details: Sequence[UnitDetail],
        final_amount=None,
        now: Optional[datetime] = None,
        receipt_number: Optional[str] = None,
) -> Receipt:
    """
    Assemble the document that gets persisted for one checkout.

    `final_amount` defaults to the rounded invoice total. When the operator
    typed a different figure it is stored as-is next to the computed total;
    the two are not reconciled.
    """
    if not items:
        raise ReceiptBuildError("Cart is empty")

    calculation = calculate_invoice(items, total, accessories, special_discount)
    receipt_items = build_receipt_items(items, unit_details)

    if final_amount is None or final_amount == "":
        final = calculation.rounded_total
    else:
        try:
            final = to_money(final_amount)
        except ValueError:
            raise ReceiptBuildError(f"Final amount must be a number, got {final_amount!r}") from None

    now = now or datetime.now()
    return Receipt(
        customer=customer,
        accessories=bool(accessories),
        special_discount=to_money(special_discount or 0),
        items=receipt_items,
        calculation=calculation,
        receipt_number=receipt_number or generate_receipt_number(),
        date=now.date().isoformat(),
        final_amount=final,
    )


class ReceiptStore:
    """
    Write side for receipts plus the "current receipt" shown in the preview.
    """

    def __init__(self, client: ApiClient, errors: Optional[ErrorSlot] = None):
        self.client = client
        self.error = errors or ErrorSlot()
        self.current_receipt: Optional[Receipt] = None
        self.receipts: List[Receipt] = []
        self.loading = False
        self._in_flight = threading.Lock()
        self._posted = set()  # receipt numbers already accepted by the backend

    @property
    def submitting(self) -> bool:
        return self._in_flight.locked()

    def _decode(self, row) -> Optional[Receipt]:
        try:
            return Receipt.from_dict(row)
        except ModelValidationError as e:
            logger.warning("Skipping malformed receipt from backend: %s", e)
            self.error.set(f"Malformed receipt from server: {e}")
            return None

    def generate(self, receipt: Receipt) -> bool:
        """
        POST the receipt. A second call while one is still pending is
        refused, and a receipt number that was already accepted is not
        posted again.
        """
        if receipt.receipt_number in self._posted:
            logger.info("Receipt %s already generated, not posting again", receipt.receipt_number)
            return True

        if not self._in_flight.acquire(blocking=False):
            self.error.set("A receipt is already being generated, please wait")
            return False

        try:
            self.loading = True
            self.error.clear()
            ok, msg, data = insert_row(self.client, "receipts", receipt.to_payload())
        finally:
            self.loading = False
            self._in_flight.release()

        if not ok:
            self.error.set(msg)
            return False

        saved = receipt
        if data:
            try:
                saved = Receipt.from_dict(data)
            except ModelValidationError as e:
                logger.warning("Backend echoed an unexpected receipt shape, keeping local copy: %s", e)
        self._posted.add(receipt.receipt_number)
        self.current_receipt = saved
        self.receipts.append(saved)
        logger.info("Generated receipt %s (%d units)", saved.receipt_number, saved.unit_count)
        return True

    def fetch_receipts(self) -> bool:
        self.loading = True
        self.error.clear()
        try:
            ok, msg, rows = fetch_rows(self.client, "receipts")
        finally:
            self.loading = False

        if not ok:
            self.error.set(msg)
            return False

        decoded = [self._decode(row) for row in rows]
        self.receipts = [r for r in decoded if r is not None]
        return True

    def fetch_receipt(self, receipt_id: str) -> bool:
        ok, msg, data = fetch_row(self.client, "receipts", receipt_id)
        if not ok:
            self.error.set(msg)
            return False

        receipt = self._decode(data)
        if receipt is None:
            return False
        self.current_receipt = receipt
        return True

    def update_receipt(self, receipt_id: str, receipt: Receipt) -> bool:
        ok, msg, data = update_row(self.client, "receipts", receipt_id, receipt.to_payload())
        if not ok:
            self.error.set(msg)
            return False

        updated = self._decode(data) if data else receipt
        if updated is None:
            return False
        self.receipts = [updated if r.id == receipt_id else r for r in self.receipts]
        if self.current_receipt is not None and self.current_receipt.id == receipt_id:
            self.current_receipt = updated
        return True

    def delete_receipt(self, receipt_id: str) -> bool:
        ok, msg, _ = delete_row(self.client, "receipts", receipt_id)
        if not ok:
            self.error.set(msg)
            return False

        self.receipts = [r for r in self.receipts if r.id != receipt_id]
        if self.current_receipt is not None and self.current_receipt.id == receipt_id:
            self.current_receipt = None
        return True

    def set_current(self, receipt: Receipt) -> None:
        self.current_receipt = receipt

    def clear_current(self) -> None:
        self.current_receipt = None


def total_units(items: Sequence[CartLineItem]) -> int:
    return sum(line.quantity for line in items)


def blank_unit_details(items: Sequence[CartLineItem], previous: Sequence[UnitDetail] = ()) -> List[UnitDetail]:
    """
    One UnitDetail per unit, keeping whatever was already typed at the same
    position when the cart changes size.
    """
    count = total_units(items)
    return [previous[i] if i < len(previous) else UnitDetail() for i in range(count)]
