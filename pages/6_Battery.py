import pandas as pd
import streamlit as st

from element_component import confirmation_dialog, get_catalog, require_login, session_guard, show_error

st.set_page_config(page_title="Battery", page_icon="🔋")
st.title("🔋 Batteries")

require_login()
catalog = get_catalog()

with session_guard():
    if st.button("🔄 Refresh") or not catalog.batteries:
        catalog.list_batteries()

show_error(catalog.error)

if not catalog.batteries:
    st.info("No batteries yet. Add one from the Dashboard.")
    st.stop()

df = pd.DataFrame([{"Name": b.name, "Capacity": b.capacity} for b in catalog.batteries])
st.dataframe(df, hide_index=True, width="stretch")

by_id = {b.id: b for b in catalog.batteries if b.id}
if not by_id:
    st.stop()

selected_id = st.selectbox(
    "Battery",
    list(by_id.keys()),
    format_func=lambda bid: f"{by_id[bid].name} - {by_id[bid].capacity}",
)

if st.button("🗑️ Delete battery"):
    confirmation_dialog(
        {"Battery": by_id[selected_id].name, "Capacity": by_id[selected_id].capacity},
        lambda: catalog.delete_battery(selected_id),
        "battery_delete_state",
        catalog.error,
    )
