import pandas as pd
import streamlit as st

from domain.models import ModelValidationError, ReceiptFilters
from element_component import (
    confirmation_dialog,
    get_receipt_query,
    get_receipt_store,
    require_login,
    session_guard,
    show_error,
)
from services.receipt_query_service import receipts_to_rows

# -----------------------------------------------------------------------------
# Page config
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Receipt Filter", page_icon="🔎", layout="wide")
st.title("🔎 Receipt Filter")

require_login()
query = get_receipt_query()
store = get_receipt_store()

FILTER_KEYS = ["f_from", "f_to", "f_receipt", "f_chassis", "f_phone", "f_state", "f_code", "f_gstin"]


def _clear_filters():
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)
    query.clear()


# -----------------------------------------------------------------------------
# 1) Filters
# -----------------------------------------------------------------------------
with st.form("filter_form", enter_to_submit=True):
    col1, col2, col3, col4 = st.columns(4)
    from_date = col1.date_input("From date", value=None, key="f_from")
    to_date = col2.date_input("To date", value=None, key="f_to")
    receipt_number = col3.text_input("Invoice No", key="f_receipt")
    chassis_no = col4.text_input("Chassis No", key="f_chassis")

    col5, col6, col7, col8 = st.columns(4)
    phone = col5.text_input("Phone", key="f_phone")
    state = col6.text_input("State", key="f_state")
    code = col7.text_input("State code", key="f_code")
    gstin = col8.text_input("GSTIN", key="f_gstin")

    submitted = st.form_submit_button("Search", type="primary")

st.button("Clear filters", on_click=_clear_filters)

if submitted:
    try:
        filters = ReceiptFilters(
            from_date=from_date,
            to_date=to_date,
            receipt_number=receipt_number,
            chassis_no=chassis_no,
            phone=phone,
            state=state,
            code=code,
            gstin=gstin,
        )
    except ModelValidationError as e:
        st.error(str(e))
    else:
        with st.spinner("Searching..."):
            with session_guard():
                query.search(filters)

show_error(query.error)

# -----------------------------------------------------------------------------
# 2) Results
# -----------------------------------------------------------------------------
if not query.has_searched:
    st.caption("Leave every field blank to list all receipts.")
    st.stop()

if not query.results:
    st.warning("No receipts match these filters.")
    st.stop()

df = pd.DataFrame(receipts_to_rows(query.results))
st.subheader(f"{len(df)} receipt(s)")
st.dataframe(df.drop(columns=["id"]), hide_index=True, width="stretch")

st.download_button(
    "⬇️ Export CSV",
    data=df.drop(columns=["id"]).to_csv(index=False).encode("utf-8"),
    file_name="receipts.csv",
    mime="text/csv",
)

st.divider()

# -----------------------------------------------------------------------------
# 3) Open / delete one receipt
# -----------------------------------------------------------------------------
by_id = {r.id: r for r in query.results if r.id}
if not by_id:
    st.stop()

selected_id = st.selectbox(
    "Receipt",
    options=list(by_id.keys()),
    format_func=lambda rid: f"{by_id[rid].receipt_number} - {by_id[rid].customer.customer_name}",
)

col_view, col_delete = st.columns([1, 1])

if col_view.button("📄 View invoice"):
    with session_guard():
        ok = store.fetch_receipt(selected_id)
    if ok:
        st.switch_page("pages/3_Invoice_Preview.py")
    show_error(store.error)


def _delete_selected() -> bool:
    if not store.delete_receipt(selected_id):
        return False
    query.results = [r for r in query.results if r.id != selected_id]
    return True


if col_delete.button("🗑️ Delete receipt"):
    selected = by_id[selected_id]
    confirmation_dialog(
        {"Invoice No": selected.receipt_number, "Customer": selected.customer.customer_name},
        _delete_selected,
        "receipt_delete_state",
        store.error,
    )
