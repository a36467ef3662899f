# services/invoice_service.py

import threading
import time
from decimal import Decimal
from typing import Callable, Iterable, Optional

from domain.models import CartLineItem, InvoiceCalculation
from utils.formatting import to_money

CGST_RATE = Decimal("0.09")
SGST_RATE = Decimal("0.09")
RECEIPT_NUMBER_PREFIX = "EV-"


class InvoiceError(ValueError):
    """Caller passed something the calculator will not price."""


def calculate_invoice(
        items: Iterable[CartLineItem],
        total,
        accessories_enabled: bool,
        special_discount_percent=0,
) -> InvoiceCalculation:
    """
    Price a cart snapshot.

      accessory_charges = sum(model.accessory_charge * qty) if accessories else 0
      subtotal          = total + accessory_charges
      discount          = subtotal * discount% / 100
      taxable_amount    = subtotal - discount
      cgst = sgst       = taxable_amount * 9%
      total_amount      = taxable_amount + cgst + sgst

    `total` is the cart's raw sum and is never altered here. The discount is
    not clamped: anything outside 0..100 is the caller's mistake and raises.
    """
    total = to_money(total)
    try:
        discount_percent = to_money(special_discount_percent or 0)
    except ValueError:
        raise InvoiceError(f"Special discount must be a number, got {special_discount_percent!r}") from None

    if not discount_percent.is_finite():
        raise InvoiceError(f"Special discount must be a number, got {special_discount_percent!r}")
    if not Decimal("0") <= discount_percent <= Decimal("100"):
        raise InvoiceError(f"Special discount must be between 0 and 100, got {discount_percent}")

    accessory_charges = Decimal("0")
    if accessories_enabled:
        for item in items:
            accessory_charges += item.product.model.accessory_charge * item.quantity

    subtotal = total + accessory_charges
    discount = subtotal * discount_percent / Decimal("100")
    taxable_amount = subtotal - discount
    cgst = taxable_amount * CGST_RATE
    sgst = taxable_amount * SGST_RATE

    return InvoiceCalculation(
        subtotal=subtotal,
        accessory_charges=accessory_charges,
        discount=discount,
        taxable_amount=taxable_amount,
        cgst=cgst,
        sgst=sgst,
        total_amount=taxable_amount + cgst + sgst,
    )


class ReceiptNumberGenerator:
    """
    "EV-<epoch milliseconds>".

    Within one process a number is never handed out twice: a call landing in
    the same millisecond as (or behind) the previous one gets previous + 1.
    """

    def __init__(self, clock: Callable[[], float] = time.time, prefix: str = RECEIPT_NUMBER_PREFIX):
        self._clock = clock
        self.prefix = prefix
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            millis = int(self._clock() * 1000)
            if millis <= self._last:
                millis = self._last + 1
            self._last = millis
        return f"{self.prefix}{millis}"


_default_generator = ReceiptNumberGenerator()


def generate_receipt_number(generator: Optional[ReceiptNumberGenerator] = None) -> str:
    return (generator or _default_generator).next()
