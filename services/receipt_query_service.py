# services/receipt_query_service.py

import logging
from typing import Any, Dict, List, Optional

from api_client import ApiClient
from data_integrator import search_receipts
from domain.models import ModelValidationError, Receipt, ReceiptFilters
from services.error_state import ErrorSlot

logger = logging.getLogger(__name__)


class ReceiptQuery:
    """
    Read side: forwards sparse filters to the backend and keeps the result
    exactly as returned (no re-filtering, no re-sorting).
    """

    def __init__(self, client: ApiClient, errors: Optional[ErrorSlot] = None):
        self.client = client
        self.error = errors or ErrorSlot()
        self.results: List[Receipt] = []
        self.last_filters: Dict[str, str] = {}
        self.has_searched = False
        self.loading = False

    def search(self, filters: ReceiptFilters) -> bool:
        payload = filters.to_payload()

        self.loading = True
        self.error.clear()
        try:
            ok, msg, rows = search_receipts(self.client, payload)
        finally:
            self.loading = False

        self.has_searched = True
        self.last_filters = payload
        if not ok:
            self.error.set(msg)
            return False

        results = []
        rejected = []
        for row in rows:
            try:
                results.append(Receipt.from_dict(row))
            except ModelValidationError as e:
                logger.warning("Cannot show search hit: %s", e)
                rejected.append(str(e))
        self.results = results

        if rejected:
            self.error.set(
                f"{len(rejected)} of {len(rows)} receipt(s) could not be shown: {rejected[0]}"
            )

        logger.info("Receipt search %s -> %d hit(s)", payload or "(no filters)", len(results))
        return True

    def clear(self) -> None:
        self.results = []
        self.last_filters = {}
        self.has_searched = False
        self.error.clear()


def receipts_to_rows(receipts: List[Receipt]) -> List[Dict[str, Any]]:
    """
    Flatten receipts for a table / CSV export. One row per receipt; chassis
    numbers of all units are joined.
    """
    rows = []
    for receipt in receipts:
        rows.append(
            {
                "Invoice No": receipt.receipt_number,
                "Date": receipt.date,
                "Customer": receipt.customer.customer_name,
                "Phone": receipt.customer.phone,
                "City": receipt.customer.city,
                "State": receipt.customer.state,
                "Code": receipt.customer.code,
                "GSTIN": receipt.customer.gstin,
                "Units": receipt.unit_count,
                "Chassis No": ", ".join(i.chassis_number for i in receipt.items if i.chassis_number),
                "Taxable": float(receipt.calculation.taxable_amount),
                "Total": float(receipt.calculation.total_amount),
                "Final Amount": float(receipt.final_amount),
                "id": receipt.id,
            }
        )
    return rows
