"""Builders for records and backend rows used across the tests."""

from domain.models import Battery, Model, Product


class FakeClock:
    """Manually advanced clock for TTL and receipt-number tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_product(
        model_name: str = "Zippy",
        battery_name: str = "Li-60",
        rate=50000,
        accessory_charge=0,
        product_id=None,
        available_quantity: int = 10,
) -> Product:
    return Product(
        model=Model(name=model_name, accessory_charge=accessory_charge, id=f"m-{model_name}"),
        battery=Battery(name=battery_name, capacity="60V 30Ah", id=f"b-{battery_name}"),
        range_km=80,
        rate=rate,
        available_quantity=available_quantity,
        id=product_id,
    )


def product_row(product_id="p1", model_name="Zippy", battery_name="Li-60", rate=50000, qty=10) -> dict:
    """A product as the backend returns it, bookkeeping keys included."""
    return {
        "_id": product_id,
        "model": {"_id": "m1", "name": model_name, "accessoryCharge": 1000, "__v": 0},
        "battery": {"_id": "b1", "name": battery_name, "capacity": "60V 30Ah"},
        "range": 80,
        "rate": rate,
        "availableQuantity": qty,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
        "__v": 0,
    }


def receipt_row(receipt_id="r1", receipt_number="EV-1700000000000", **overrides) -> dict:
    """A receipt as the backend returns it: one unit, no accessories, no discount."""
    row = {
        "_id": receipt_id,
        "customerName": "Asha Patil",
        "phone": "9876543210",
        "address": "12 MG Road",
        "city": "Nashik",
        "state": "Maharashtra",
        "code": "27",
        "gstin": "",
        "paymentType": "upi",
        "accessories": False,
        "specialDiscount": 0,
        "items": [
            {
                "_id": "i1",
                "product": "p1",
                "model": {"name": "Zippy", "accessoryCharge": 1000},
                "battery": {"name": "Li-60", "capacity": "60V 30Ah"},
                "range": 80,
                "rate": 50000,
                "quantity": 1,
                "amount": 50000,
                "chassisNumber": "CH-001",
                "batteryNumber": "BT-001",
                "chargerNumber": "CG-001",
                "hsnCode": "8711",
                "color": "Red",
            }
        ],
        "subtotal": 50000,
        "accessoryCharges": 0,
        "discount": 0,
        "taxableAmount": 50000,
        "cgst": 4500,
        "sgst": 4500,
        "totalAmount": 59000,
        "receiptNumber": receipt_number,
        "date": "2024-03-15",
        "finalAmount": 59000,
        "createdAt": "2024-03-15T10:00:00Z",
        "__v": 0,
    }
    row.update(overrides)
    return row
