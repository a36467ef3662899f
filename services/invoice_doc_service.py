# voltsplus/services/invoice_doc_service.py

import io
import logging
import os
from pathlib import Path
from typing import Dict

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Mm
from dotenv import load_dotenv

from domain.models import Receipt
from services.invoice_service import CGST_RATE, SGST_RATE
from utils.docx_helpers import add_full_width_row, add_values_row
from utils.formatting import format_inr

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = {
    "name": "VOLTS PLUS PRIVATE LIMITED",
    "address": (
        "SHOP NO. 2, SHYAM ICON, RASBIHARI LINK ROAD, NEAR RAJMATA MANGAL KARYALAY, "
        "PANCHVATI, NASHIK, 422004, MAHARASHTRA, INDIA"
    ),
    "phone": "7066775755",
}

COLUMNS = 6  # Sr | Description | HSN | Qty | Rate | Amount


def _company_details() -> Dict[str, str]:
    load_dotenv()
    return {
        "name": os.getenv("COMPANY_NAME", DEFAULT_COMPANY["name"]),
        "address": os.getenv("COMPANY_ADDRESS", DEFAULT_COMPANY["address"]),
        "phone": os.getenv("COMPANY_PHONE", DEFAULT_COMPANY["phone"]),
    }


def _money(value) -> str:
    return format_inr(value, decimals=2)


def _percent(rate) -> str:
    return f"{(rate * 100).normalize():f}%"


def _item_description(item) -> str:
    lines = [item.description]
    serials = [
        ("Colour", item.color),
        ("Chassis No", item.chassis_number),
        ("Battery No", item.battery_number),
        ("Charger No", item.charger_number),
    ]
    lines.extend(f"{label}: {value}" for label, value in serials if value)
    return "\n".join(lines)


def build_invoice_document(receipt: Receipt) -> Document:
    """
    Lay out a printable tax invoice for `receipt`:
      - header (TAX INVOICE, contact number, state + code, company name/address)
      - customer block
      - one row per physical unit
      - totals with the SGST / CGST split and the final amount
    """
    company = _company_details()
    customer = receipt.customer
    calc = receipt.calculation

    doc = Document()
    section = doc.sections[0]
    section.page_width, section.page_height = Mm(210), Mm(297)
    for side in ("left_margin", "right_margin", "top_margin", "bottom_margin"):
        setattr(section, side, Mm(10))

    table = doc.add_table(rows=0, cols=COLUMNS)
    table.style = "Table Grid"

    # Header
    add_full_width_row(table, "TAX INVOICE", bold=True, size=20, align="center")
    add_values_row(table, [f"MO : {company['phone']}", "", "", "STATE", customer.state, f"CODE {customer.code}".strip()], size=9)
    add_full_width_row(table, company["name"], bold=True, size=18, align="center")
    add_full_width_row(table, company["address"], size=8, align="center")

    # Customer
    add_values_row(table, ["NAME :", customer.customer_name, "", "INVOICE NO :", receipt.receipt_number, ""], size=9)
    add_values_row(table, ["ADDRESS :", customer.address, "", "DATE :", receipt.date, ""], size=9)
    add_values_row(table, ["CITY :", customer.city, "", "STATE :", customer.state, customer.code], size=9)
    add_values_row(table, ["GSTIN :", customer.gstin, "", "PAYMENT :", customer.payment_type.upper(), ""], size=9)

    # Items
    add_values_row(table, ["SR", "DESCRIPTION", "HSN", "QTY", "RATE", "AMOUNT"], bold=True, size=9, align="center")
    for index, item in enumerate(receipt.items, start=1):
        add_values_row(
            table,
            [str(index), _item_description(item), item.hsn_code, str(item.quantity), _money(item.rate), _money(item.amount)],
            size=9,
        )

    # Totals
    totals = [
        ("SUBTOTAL", calc.subtotal),
        ("ACCESSORIES", calc.accessory_charges),
        (f"DISCOUNT ({receipt.special_discount.normalize():f}%)", calc.discount),
        ("TAXABLE AMOUNT", calc.taxable_amount),
        (f"SGST {_percent(SGST_RATE)}", calc.sgst),
        (f"CGST {_percent(CGST_RATE)}", calc.cgst),
        ("TOTAL", calc.total_amount),
        ("FINAL AMOUNT", receipt.final_amount),
    ]
    for label, value in totals:
        if label == "ACCESSORIES" and not receipt.accessories:
            continue
        add_values_row(table, ["", "", "", "", label, _money(value)], bold=label in ("TOTAL", "FINAL AMOUNT"), size=9)

    add_full_width_row(table, f"Rupees {format_inr(receipt.final_amount)} Only", bold=True, size=10)

    doc.add_paragraph("")
    signature = doc.add_paragraph(f"For {company['name']}\n\n\nAuthorised Signatory")
    signature.alignment = WD_ALIGN_PARAGRAPH.RIGHT

    return doc


def invoice_docx_bytes(receipt: Receipt) -> bytes:
    """The .docx as bytes, ready for a download button."""
    buffer = io.BytesIO()
    build_invoice_document(receipt).save(buffer)
    return buffer.getvalue()


def save_invoice_docx(receipt: Receipt, output_dir: str) -> str:
    """
    Write Invoice-<receipt number>.docx into `output_dir` and return its absolute path.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    output_path = Path(output_dir) / f"Invoice-{receipt.receipt_number}.docx"
    build_invoice_document(receipt).save(str(output_path))
    logger.info("Saved invoice %s to %s", receipt.receipt_number, output_path)
    return str(output_path.resolve())
