import logging
from dataclasses import fields

import pandas as pd
import streamlit as st

from domain.models import PAYMENT_TYPES, CustomerDetails, ModelValidationError, UnitDetail
from element_component import get_cart, get_receipt_store, require_login, session_guard, show_error
from services.invoice_service import InvoiceError, calculate_invoice, generate_receipt_number
from services.receipt_service import ReceiptBuildError, blank_unit_details, build_receipt, expand_units
from utils.formatting import format_rupee

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Page config
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Generate Receipt", page_icon="🧾")
st.title("🧾 Generate Receipt")

require_login()
cart = get_cart()
store = get_receipt_store()

if cart.is_empty:
    st.session_state.pop("receipt_submitting", None)
    st.info("Cart is empty. Add products from the Dashboard first.")
    st.stop()

show_error(store.error)

# -----------------------------------------------------------------------------
# 1) Customer
# -----------------------------------------------------------------------------
st.subheader("Customer")
col_left, col_right = st.columns(2)
with col_left:
    customer_name = st.text_input("Customer name *", key="customer_name")
    phone = st.text_input("Phone *", key="customer_phone")
    address = st.text_area("Address *", key="customer_address", height=80)
    payment_type = st.selectbox(
        "Payment type",
        PAYMENT_TYPES,
        key="customer_payment_type",
        format_func=lambda p: p.replace("_", " ").title(),
    )
with col_right:
    city = st.text_input("City *", key="customer_city")
    state = st.text_input("State *", key="customer_state")
    code = st.text_input("State code", key="customer_code")
    gstin = st.text_input("GSTIN", key="customer_gstin")

st.divider()

# -----------------------------------------------------------------------------
# 2) Unit details, one block per physical unit
# -----------------------------------------------------------------------------
st.subheader("Unit details")

items = cart.snapshot()
st.session_state["unit_details"] = blank_unit_details(items, st.session_state.get("unit_details", []))
unit_details = st.session_state["unit_details"]

labels = {
    "chassis_number": "Chassis No",
    "battery_number": "Battery No",
    "charger_number": "Charger No",
    "hsn_code": "HSN Code",
    "color": "Colour",
}

for i, product in enumerate(expand_units(items)):
    with st.expander(f"Unit {i + 1}: {product.label}", expanded=i == 0):
        cols = st.columns(len(labels))
        values = {}
        for col, f in zip(cols, fields(UnitDetail)):
            values[f.name] = col.text_input(
                labels[f.name],
                value=getattr(unit_details[i], f.name),
                key=f"unit_{i}_{f.name}",
            )
        unit_details[i] = UnitDetail(**values)

st.divider()

# -----------------------------------------------------------------------------
# 3) Pricing
# -----------------------------------------------------------------------------
st.subheader("Pricing")
col_acc, col_disc = st.columns(2)
accessories = col_acc.checkbox("Include accessories", key="include_accessories")
special_discount = col_disc.number_input(
    "Special discount (%)", min_value=0.0, max_value=100.0, step=0.5, key="special_discount"
)

try:
    calculation = calculate_invoice(items, cart.total, accessories, str(special_discount))
except InvoiceError as e:
    st.session_state.pop("receipt_submitting", None)
    st.error(str(e))
    st.stop()

df_calc = pd.DataFrame(
    [
        ("Cart total", format_rupee(cart.total)),
        ("Accessory charges", format_rupee(calculation.accessory_charges)),
        ("Subtotal", format_rupee(calculation.subtotal)),
        ("Discount", format_rupee(calculation.discount)),
        ("Taxable amount", format_rupee(calculation.taxable_amount)),
        ("CGST 9%", format_rupee(calculation.cgst)),
        ("SGST 9%", format_rupee(calculation.sgst)),
        ("Total", format_rupee(calculation.total_amount)),
    ],
    columns=["", "Amount"],
)
st.dataframe(df_calc, hide_index=True, width="stretch")

# Re-keyed on the computed total so the field resets when pricing changes.
rounded_total = calculation.rounded_total
final_amount = st.number_input(
    "Final amount",
    min_value=0,
    step=1,
    value=int(rounded_total),
    key=f"final_amount_{rounded_total}",
)

# -----------------------------------------------------------------------------
# 4) Submit
# -----------------------------------------------------------------------------
# Both keys outlive the run a second click interrupts. The pending number
# is reused until the backend accepts it.


def _mark_submitting():
    st.session_state["receipt_submitting"] = True


submitting = st.session_state.get("receipt_submitting", False)
clicked = st.button(
    "Generate receipt",
    type="primary",
    disabled=submitting or store.submitting,
    on_click=_mark_submitting,
)

if clicked or submitting:
    if "pending_receipt_number" not in st.session_state:
        st.session_state["pending_receipt_number"] = generate_receipt_number()

    try:
        customer = CustomerDetails(
            customer_name=customer_name,
            phone=phone,
            address=address,
            city=city,
            state=state,
            code=code,
            gstin=gstin,
            payment_type=payment_type,
        )
        receipt = build_receipt(
            customer=customer,
            items=items,
            total=cart.total,
            accessories=accessories,
            special_discount=str(special_discount),
            unit_details=unit_details,
            final_amount=final_amount,
            receipt_number=st.session_state["pending_receipt_number"],
        )
    except (ModelValidationError, ReceiptBuildError, InvoiceError) as e:
        st.session_state["receipt_submitting"] = False
        st.error(str(e))
        st.stop()

    try:
        with st.spinner("Generating receipt..."):
            with session_guard():
                ok = store.generate(receipt)
    finally:
        st.session_state["receipt_submitting"] = False

    if not ok:
        show_error(store.error)
        st.stop()

    cart.clear()
    st.session_state.pop("unit_details", None)
    st.session_state.pop("pending_receipt_number", None)
    logger.info("Cart cleared after receipt %s", receipt.receipt_number)
    st.switch_page("pages/3_Invoice_Preview.py")
