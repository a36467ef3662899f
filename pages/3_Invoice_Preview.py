import pandas as pd
import streamlit as st

from element_component import get_receipt_store, require_login
from services.invoice_doc_service import invoice_docx_bytes
from utils.formatting import format_inr, format_rupee

# -----------------------------------------------------------------------------
# Page config
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Invoice Preview", page_icon="📄")
st.title("📄 Invoice Preview")

require_login()
store = get_receipt_store()
receipt = store.current_receipt

if receipt is None:
    st.info("No receipt selected. Generate one or open one from Receipt Filter.")
    st.stop()

customer = receipt.customer
calc = receipt.calculation

# -----------------------------------------------------------------------------
# Header
# -----------------------------------------------------------------------------
col_left, col_right = st.columns(2)
with col_left:
    st.markdown(f"**{customer.customer_name}**")
    st.write(customer.address)
    st.write(f"{customer.city}, {customer.state} {customer.code}".strip())
    st.write(f"📞 {customer.phone}")
    if customer.gstin:
        st.write(f"GSTIN: {customer.gstin}")
with col_right:
    st.markdown(f"**Invoice No:** {receipt.receipt_number}")
    st.markdown(f"**Date:** {receipt.date}")
    st.markdown(f"**Payment:** {customer.payment_type.replace('_', ' ').title()}")

st.divider()

# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------
df_items = pd.DataFrame(
    [
        {
            "Sr": i,
            "Description": item.description,
            "Colour": item.color,
            "Chassis No": item.chassis_number,
            "Battery No": item.battery_number,
            "Charger No": item.charger_number,
            "HSN": item.hsn_code,
            "Qty": item.quantity,
            "Amount": format_rupee(item.amount),
        }
        for i, item in enumerate(receipt.items, start=1)
    ]
)
st.dataframe(df_items, hide_index=True, width="stretch")

# -----------------------------------------------------------------------------
# Totals
# -----------------------------------------------------------------------------
totals = [("Subtotal", calc.subtotal)]
if receipt.accessories:
    totals.append(("Accessory charges", calc.accessory_charges))
totals += [
    (f"Discount ({receipt.special_discount.normalize():f}%)", calc.discount),
    ("Taxable amount", calc.taxable_amount),
    ("SGST 9%", calc.sgst),
    ("CGST 9%", calc.cgst),
    ("Total", calc.total_amount),
    ("Final amount", receipt.final_amount),
]
df_totals = pd.DataFrame([(label, format_rupee(value)) for label, value in totals], columns=["", "Amount"])
st.dataframe(df_totals, hide_index=True)

st.markdown(f"**Rupees {format_inr(receipt.final_amount)} Only**")

st.download_button(
    "⬇️ Download invoice (.docx)",
    data=invoice_docx_bytes(receipt),
    file_name=f"Invoice-{receipt.receipt_number}.docx",
    mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    type="primary",
)

if st.button("Close preview"):
    store.clear_current()
    st.rerun()
