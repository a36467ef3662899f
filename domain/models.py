# voltsplus/domain/models.py

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Union

from utils.formatting import money_to_json, round_half_up, to_money

# Bookkeeping keys the remote store adds to every document.
IGNORED_WIRE_KEYS = {"__v", "createdAt", "updatedAt", "createdBy", "updatedBy"}


class ModelValidationError(ValueError):
    """A payload did not match the shape of the record it was meant to build."""


def _check_keys(
        kind: str,
        data: Any,
        required: Iterable[str],
        optional: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Reject missing and unknown keys up front.
    Returns a copy of `data` without the ignored bookkeeping keys.
    """
    if not isinstance(data, dict):
        raise ModelValidationError(f"{kind} payload must be an object, got {type(data).__name__}")

    cleaned = {k: v for k, v in data.items() if k not in IGNORED_WIRE_KEYS}
    required = tuple(required)
    allowed = set(required) | set(optional)

    missing = [k for k in required if k not in cleaned]
    if missing:
        raise ModelValidationError(f"{kind} is missing fields: {missing}")

    unknown = sorted(k for k in cleaned if k not in allowed)
    if unknown:
        raise ModelValidationError(f"{kind} has unknown fields: {unknown}")

    return cleaned


def _wire_id(data: Dict[str, Any]) -> Optional[str]:
    value = data.get("_id", data.get("id"))
    return str(value) if value not in (None, "") else None


def _to_int(kind: str, name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ModelValidationError(f"{kind}.{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ModelValidationError(f"{kind}.{name} must be an integer, got {value!r}") from None
    if number != number.to_integral_value():
        raise ModelValidationError(f"{kind}.{name} must be an integer, got {value!r}")
    return int(number)


def _to_money(kind: str, name: str, value: Any) -> Decimal:
    try:
        return to_money(value)
    except ValueError:
        raise ModelValidationError(f"{kind}.{name} must be a number, got {value!r}") from None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@dataclass
class Model:
    """
    A vehicle model. Unique by name within the catalog.
    """
    name: str
    accessory_charge: Decimal = Decimal("0")  # charged per unit when accessories are on
    id: Optional[str] = None

    def __post_init__(self):
        if not _text(self.name).strip():
            raise ModelValidationError("Model.name is required")
        self.accessory_charge = _to_money("Model", "accessory_charge", self.accessory_charge)
        if self.accessory_charge < 0:
            raise ModelValidationError("Model.accessory_charge cannot be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Model":
        data = _check_keys("Model", data, ("name",), ("_id", "id", "accessoryCharge"))
        return cls(
            name=data["name"],
            accessory_charge=data.get("accessoryCharge", 0),
            id=_wire_id(data),
        )

    def to_payload(self, with_id: bool = True) -> Dict[str, Any]:
        payload = {
            "name": self.name,
            "accessoryCharge": money_to_json(self.accessory_charge),
        }
        if with_id and self.id:
            payload["_id"] = self.id
        return payload


@dataclass
class Battery:
    name: str
    capacity: str = ""  # free text, e.g. "60V 30Ah"
    id: Optional[str] = None

    def __post_init__(self):
        if not _text(self.name).strip():
            raise ModelValidationError("Battery.name is required")
        self.capacity = _text(self.capacity)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Battery":
        data = _check_keys("Battery", data, ("name",), ("_id", "id", "capacity"))
        return cls(name=data["name"], capacity=data.get("capacity", ""), id=_wire_id(data))

    def to_payload(self, with_id: bool = True) -> Dict[str, Any]:
        payload = {"name": self.name, "capacity": self.capacity}
        if with_id and self.id:
            payload["_id"] = self.id
        return payload


@dataclass
class Product:
    """
    A sellable model + battery combination.
    Identity is `id` once persisted, (model.name, battery.name) before that.
    """
    model: Model
    battery: Battery
    range_km: int
    rate: Decimal
    available_quantity: int = 0
    id: Optional[str] = None

    def __post_init__(self):
        self.range_km = _to_int("Product", "range_km", self.range_km)
        self.rate = _to_money("Product", "rate", self.rate)
        self.available_quantity = _to_int("Product", "available_quantity", self.available_quantity)

        if self.rate <= 0:
            raise ModelValidationError("Product.rate must be greater than zero")
        if self.available_quantity < 0:
            raise ModelValidationError("Product.available_quantity cannot be negative")

    @property
    def composite_key(self) -> tuple:
        return self.model.name, self.battery.name

    @property
    def label(self) -> str:
        return f"{self.model.name} - {self.battery.name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        data = _check_keys(
            "Product",
            data,
            ("model", "battery", "range", "rate"),
            ("_id", "id", "availableQuantity"),
        )
        return cls(
            model=Model.from_dict(data["model"]),
            battery=Battery.from_dict(data["battery"]),
            range_km=data["range"],
            rate=data["rate"],
            available_quantity=data.get("availableQuantity", 0),
            id=_wire_id(data),
        )

    def to_payload(self, with_id: bool = True) -> Dict[str, Any]:
        payload = {
            "model": self.model.to_payload(),
            "battery": self.battery.to_payload(),
            "range": self.range_km,
            "rate": money_to_json(self.rate),
            "availableQuantity": self.available_quantity,
        }
        if with_id and self.id:
            payload["_id"] = self.id
        return payload


# ---------------------------------------------------------------------------
# Cart + invoice
# ---------------------------------------------------------------------------

@dataclass
class CartLineItem:
    product: Product
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.product.rate * self.quantity


@dataclass(frozen=True)
class InvoiceCalculation:
    subtotal: Decimal
    accessory_charges: Decimal
    discount: Decimal
    taxable_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    total_amount: Decimal

    @property
    def rounded_total(self) -> Decimal:
        """Default for the operator-editable final amount."""
        return round_half_up(self.total_amount)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceCalculation":
        return cls(**{
            attr: _to_money("InvoiceCalculation", attr, data[wire])
            for attr, wire in INVOICE_WIRE_KEYS.items()
        })

    def to_payload(self) -> Dict[str, Any]:
        return {wire: money_to_json(getattr(self, attr)) for attr, wire in INVOICE_WIRE_KEYS.items()}


INVOICE_WIRE_KEYS = {
    "subtotal": "subtotal",
    "accessory_charges": "accessoryCharges",
    "discount": "discount",
    "taxable_amount": "taxableAmount",
    "cgst": "cgst",
    "sgst": "sgst",
    "total_amount": "totalAmount",
}


# ---------------------------------------------------------------------------
# Receipt
# ---------------------------------------------------------------------------

UNIT_DETAIL_WIRE_KEYS = {
    "chassis_number": "chassisNumber",
    "battery_number": "batteryNumber",
    "charger_number": "chargerNumber",
    "hsn_code": "hsnCode",
    "color": "color",
}


@dataclass
class UnitDetail:
    """
    Operator input for one physical unit. Blank serials stay blank.
    """
    chassis_number: str = ""
    battery_number: str = ""
    charger_number: str = ""
    hsn_code: str = ""
    color: str = ""

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _text(getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnitDetail":
        data = _check_keys("UnitDetail", data, (), UNIT_DETAIL_WIRE_KEYS.values())
        return cls(**{attr: data.get(wire, "") for attr, wire in UNIT_DETAIL_WIRE_KEYS.items()})


CUSTOMER_WIRE_KEYS = {
    "customer_name": "customerName",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "code": "code",
    "gstin": "gstin",
    "payment_type": "paymentType",
}

REQUIRED_CUSTOMER_FIELDS = ("customer_name", "phone", "address", "city", "state")

PAYMENT_TYPES = ("cash", "card", "upi", "bank_transfer", "finance")


@dataclass
class CustomerDetails:
    customer_name: str
    phone: str
    address: str
    city: str
    state: str
    code: str = ""  # state code printed next to the state
    gstin: str = ""
    payment_type: str = "cash"

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _text(getattr(self, f.name)).strip())

        missing = [name for name in REQUIRED_CUSTOMER_FIELDS if not getattr(self, name)]
        if missing:
            raise ModelValidationError(f"Customer details missing: {missing}")

    def to_payload(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, wire in CUSTOMER_WIRE_KEYS.items()}


@dataclass
class ReceiptItem:
    """
    One physical unit on the invoice (quantity is always 1).
    """
    model: Model
    battery: Battery
    range_km: int
    rate: Decimal
    amount: Decimal
    color: str = ""
    hsn_code: str = ""
    battery_number: str = ""
    charger_number: str = ""
    chassis_number: str = ""
    quantity: int = 1
    product: Optional[Product] = None

    @property
    def description(self) -> str:
        battery = " ".join(part for part in (self.battery.name, self.battery.capacity) if part)
        return f"{self.model.name} ({battery}, {self.range_km} km)"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceiptItem":
        data = _check_keys(
            "ReceiptItem",
            data,
            ("model", "battery", "range", "rate", "amount"),
            ("_id", "product", "quantity", *UNIT_DETAIL_WIRE_KEYS.values()),
        )
        product = data.get("product")
        return cls(
            model=Model.from_dict(data["model"]),
            battery=Battery.from_dict(data["battery"]),
            range_km=_to_int("ReceiptItem", "range_km", data["range"]),
            rate=_to_money("ReceiptItem", "rate", data["rate"]),
            amount=_to_money("ReceiptItem", "amount", data["amount"]),
            quantity=_to_int("ReceiptItem", "quantity", data.get("quantity", 1)),
            # the store may hand back a bare id instead of the populated product
            product=Product.from_dict(product) if isinstance(product, dict) else None,
            **{attr: _text(data.get(wire)) for attr, wire in UNIT_DETAIL_WIRE_KEYS.items()},
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "model": self.model.to_payload(with_id=False),
            "battery": self.battery.to_payload(with_id=False),
            "range": self.range_km,
            "rate": money_to_json(self.rate),
            "quantity": self.quantity,
            "amount": money_to_json(self.amount),
        }
        if self.product is not None:
            payload["product"] = self.product.to_payload()
        for attr, wire in UNIT_DETAIL_WIRE_KEYS.items():
            payload[wire] = getattr(self, attr)
        return payload


RECEIPT_OPTIONAL_KEYS = ("_id", "id", "code", "gstin", "paymentType", "specialDiscount", "accessories")


@dataclass
class Receipt:
    customer: CustomerDetails
    accessories: bool
    special_discount: Decimal
    items: List[ReceiptItem]
    calculation: InvoiceCalculation
    receipt_number: str
    date: str  # ISO date the invoice was issued
    final_amount: Decimal
    id: Optional[str] = None

    @property
    def unit_count(self) -> int:
        return len(self.items)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Receipt":
        required = (
            "customerName", "phone", "address", "city", "state",
            "items", "receiptNumber", "date", "finalAmount",
            *INVOICE_WIRE_KEYS.values(),
        )
        data = _check_keys("Receipt", data, required, RECEIPT_OPTIONAL_KEYS)

        customer = {attr: data.get(wire, "") for attr, wire in CUSTOMER_WIRE_KEYS.items()}
        customer["payment_type"] = customer["payment_type"] or "cash"
        return cls(
            customer=CustomerDetails(**customer),
            accessories=bool(data.get("accessories", False)),
            special_discount=_to_money("Receipt", "special_discount", data.get("specialDiscount", 0)),
            items=[ReceiptItem.from_dict(item) for item in data["items"]],
            calculation=InvoiceCalculation.from_dict(data),
            receipt_number=_text(data["receiptNumber"]),
            date=_text(data["date"]),
            final_amount=_to_money("Receipt", "final_amount", data["finalAmount"]),
            id=_wire_id(data),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            **self.customer.to_payload(),
            "accessories": self.accessories,
            "specialDiscount": money_to_json(self.special_discount),
            "items": [item.to_payload() for item in self.items],
            **self.calculation.to_payload(),
            "receiptNumber": self.receipt_number,
            "date": self.date,
            "finalAmount": money_to_json(self.final_amount),
        }
        if self.id:
            payload["_id"] = self.id
        return payload


FILTER_WIRE_KEYS = {
    "from_date": "fromDate",
    "to_date": "toDate",
    "receipt_number": "receiptNumber",
    "chassis_no": "chassisNo",
    "phone": "phone",
    "state": "state",
    "code": "code",
    "gstin": "gstin",
}


@dataclass
class ReceiptFilters:
    """
    Search criteria. A blank field means "no constraint", never "match empty".
    """
    from_date: Optional[Union[date, str]] = None
    to_date: Optional[Union[date, str]] = None
    receipt_number: Optional[str] = None
    chassis_no: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None
    code: Optional[str] = None
    gstin: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.from_date, date) and isinstance(self.to_date, date):
            if self.from_date > self.to_date:
                raise ModelValidationError("From date must not be after to date")

    def to_payload(self) -> Dict[str, str]:
        payload: Dict[str, str] = {}
        for attr, wire in FILTER_WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            value = str(value).strip()
            if value:
                payload[wire] = value
        return payload

    @property
    def is_empty(self) -> bool:
        return not self.to_payload()
