import pandas as pd
import streamlit as st

from domain.models import Model, ModelValidationError
from element_component import confirmation_dialog, get_catalog, require_login, session_guard, show_error
from utils.formatting import format_rupee

st.set_page_config(page_title="Models", page_icon="🛵")
st.title("🛵 Models")

require_login()
catalog = get_catalog()

with session_guard():
    if st.button("🔄 Refresh") or not catalog.models:
        catalog.list_models()

show_error(catalog.error)

if not catalog.models:
    st.info("No models yet. Add one from the Dashboard.")
    st.stop()

df = pd.DataFrame(
    [{"Name": m.name, "Accessory charge": format_rupee(m.accessory_charge)} for m in catalog.models]
)
st.dataframe(df, hide_index=True, width="stretch")

st.divider()

by_id = {m.id: m for m in catalog.models if m.id}
if not by_id:
    st.stop()

selected_id = st.selectbox("Model", list(by_id.keys()), format_func=lambda mid: by_id[mid].name)
selected = by_id[selected_id]

with st.form("edit_model_form", enter_to_submit=False):
    charge = st.number_input(
        "Accessory charge",
        min_value=0.0,
        step=100.0,
        value=float(selected.accessory_charge),
        format="%.2f",
        key=f"charge_{selected_id}",
    )
    if st.form_submit_button("Save"):
        try:
            updated = Model(name=selected.name, accessory_charge=charge, id=selected.id)
        except ModelValidationError as e:
            st.error(str(e))
        else:
            with session_guard():
                if catalog.update_model(selected_id, updated):
                    st.success("Model updated")
                else:
                    show_error(catalog.error)

if st.button("🗑️ Delete model"):
    confirmation_dialog(
        {"Model": selected.name},
        lambda: catalog.delete_model(selected_id),
        "model_delete_state",
        catalog.error,
    )
