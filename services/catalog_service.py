# services/catalog_service.py

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from api_client import ApiClient
from data_integrator import delete_row, fetch_rows, insert_row, update_row
from domain.models import Battery, Model, ModelValidationError, Product
from services.error_state import ErrorSlot
from utils.formatting import money_to_json, to_money

logger = logging.getLogger(__name__)

# Product fields that may be patched in place, snake_case -> wire key
PRODUCT_PATCH_KEYS = {
    "range_km": "range",
    "rate": "rate",
    "available_quantity": "availableQuantity",
}


def product_patch_payload(patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial product update and turn it into its wire form.
    Model and battery are never patched through here.
    """
    unknown = sorted(k for k in patch if k not in PRODUCT_PATCH_KEYS)
    if unknown:
        raise ModelValidationError(f"Cannot patch product fields: {unknown}")
    if not patch:
        raise ModelValidationError("Nothing to update")

    payload: Dict[str, Any] = {}
    for attr, value in patch.items():
        if attr == "rate":
            rate = to_money(value)
            if rate <= 0:
                raise ModelValidationError("Rate must be greater than zero")
            payload["rate"] = money_to_json(rate)
        else:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ModelValidationError(f"{attr} must be a whole number, got {value!r}")
            if value < 0:
                raise ModelValidationError(f"{attr} cannot be negative")
            payload[PRODUCT_PATCH_KEYS[attr]] = value
    return payload


class CatalogStore:
    """
    Local copy of products, models and batteries.

    Creates and deletes are followed by a full re-list of the collection
    instead of patching local state, so the view always mirrors the backend.
    """

    def __init__(self, client: ApiClient, errors: Optional[ErrorSlot] = None):
        self.client = client
        self.error = errors or ErrorSlot()
        self.products: List[Product] = []
        self.models: List[Model] = []
        self.batteries: List[Battery] = []
        self.loading = False

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _list(self, resource: str, decode: Callable[[Dict[str, Any]], Any]) -> Optional[list]:
        self.loading = True
        self.error.clear()
        try:
            ok, msg, rows = fetch_rows(self.client, resource)
        finally:
            self.loading = False

        if not ok:
            self.error.set(msg)
            return None

        try:
            return [decode(row) for row in rows]
        except ModelValidationError as e:
            logger.warning("Bad %s row from backend: %s", resource, e)
            self.error.set(f"Unexpected {resource} data from server: {e}")
            return None

    def list_products(self) -> bool:
        products = self._list("products", Product.from_dict)
        if products is None:
            return False
        self.products = products
        return True

    def list_models(self) -> bool:
        models = self._list("models", Model.from_dict)
        if models is None:
            return False
        self.models = models
        return True

    def list_batteries(self) -> bool:
        batteries = self._list("batteries", Battery.from_dict)
        if batteries is None:
            return False
        self.batteries = batteries
        return True

    def refresh_all(self) -> bool:
        results = [self.list_products(), self.list_models(), self.list_batteries()]
        return all(results)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _relist(self, resource: str) -> bool:
        relist: Dict[str, Callable[[], bool]] = {
            "products": self.list_products,
            "models": self.list_models,
            "batteries": self.list_batteries,
        }
        return relist[resource]()

    def _create(self, resource: str, payload: Dict[str, Any]) -> bool:
        self.error.clear()
        ok, msg, _ = insert_row(self.client, resource, payload)
        if not ok:
            self.error.set(msg)
            return False
        return self._relist(resource)

    def _delete(self, resource: str, row_id: str) -> bool:
        self.error.clear()
        ok, msg, _ = delete_row(self.client, resource, row_id)
        if not ok:
            self.error.set(msg)
            return False
        return self._relist(resource)

    def _update(self, resource: str, row_id: str, payload: Dict[str, Any], record_type: Type, target: list) -> bool:
        """PUT, then swap the matching local record for the server's answer."""
        self.error.clear()
        ok, msg, data = update_row(self.client, resource, row_id, payload)
        if not ok:
            self.error.set(msg)
            return False

        if not data:
            return self._relist(resource)

        try:
            updated = record_type.from_dict(data)
        except ModelValidationError as e:
            logger.warning("Bad %s row returned by update: %s", resource, e)
            return self._relist(resource)

        for index, record in enumerate(target):
            if record.id == row_id:
                target[index] = updated
                break
        return True

    def create_product(self, product: Product) -> bool:
        return self._create("products", product.to_payload(with_id=False))

    def create_model(self, model: Model) -> bool:
        return self._create("models", model.to_payload(with_id=False))

    def create_battery(self, battery: Battery) -> bool:
        return self._create("batteries", battery.to_payload(with_id=False))

    def update_product(self, product_id: str, patch: Dict[str, Any]) -> bool:
        try:
            payload = product_patch_payload(patch)
        except (ModelValidationError, ValueError) as e:
            self.error.set(str(e))
            return False
        return self._update("products", product_id, payload, Product, self.products)

    def update_stock(self, product: Product, quantity: int) -> bool:
        """The "update quantity" action: set available stock for one product."""
        if not product.id:
            self.error.set("Product has not been saved yet")
            return False
        return self.update_product(product.id, {"available_quantity": quantity})

    def update_model(self, model_id: str, model: Model) -> bool:
        return self._update("models", model_id, model.to_payload(with_id=False), Model, self.models)

    def update_battery(self, battery_id: str, battery: Battery) -> bool:
        return self._update("batteries", battery_id, battery.to_payload(with_id=False), Battery, self.batteries)

    def delete_product(self, product_id: str) -> bool:
        return self._delete("products", product_id)

    def delete_model(self, model_id: str) -> bool:
        return self._delete("models", model_id)

    def delete_battery(self, battery_id: str) -> bool:
        return self._delete("batteries", battery_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_model(self, name: str) -> Optional[Model]:
        return next((m for m in self.models if m.name == name), None)

    def find_battery(self, battery_id: str) -> Optional[Battery]:
        return next((b for b in self.batteries if b.id == battery_id), None)

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)
