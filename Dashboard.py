import logging
import os

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from domain.models import Battery, Model, ModelValidationError, Product
from element_component import (
    confirmation_dialog,
    get_cart,
    get_catalog,
    get_client,
    session_guard,
    show_error,
)
from services.auth_service import login, logout, register
from services.cart_service import CartError
from utils.formatting import format_rupee

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="Volts Plus Dashboard", page_icon="⚡")

client = get_client()

# -----------------------------------------------------------------------------
# Login / register
# -----------------------------------------------------------------------------
if not client.session.is_authenticated:
    st.title("⚡ Volts Plus")

    notice = st.session_state.pop("login_notice", None)
    if notice:
        st.warning(notice)

    tab_login, tab_register = st.tabs(["Login", "Register"])

    with tab_login:
        with st.form("login_form", enter_to_submit=True):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Login", type="primary"):
                ok, msg = login(client, email.strip(), password)
                if ok:
                    st.rerun()
                st.error(msg)

    with tab_register:
        with st.form("register_form", enter_to_submit=False):
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            confirm = st.text_input("Confirm password", type="password", key="register_confirm")
            if st.form_submit_button("Create account"):
                if password != confirm:
                    st.error("Passwords do not match")
                else:
                    ok, msg = register(client, email.strip(), password)
                    if ok:
                        st.rerun()
                    st.error(msg)

    st.stop()

# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------
st.sidebar.header("⚡ Dashboard")
cart = get_cart()
st.sidebar.metric("Cart", f"{cart.unit_count} unit(s)", format_rupee(cart.total))

if st.sidebar.button("Logout"):
    logout(client)
    st.rerun()

catalog = get_catalog()

with session_guard():
    if not st.session_state.get("catalog_loaded"):
        catalog.refresh_all()
        st.session_state["catalog_loaded"] = True

    if st.button("🔄 Refresh"):
        catalog.refresh_all()

st.title("Inventory")
show_error(catalog.error)

# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------
if not catalog.products:
    st.info("No products yet. Add a model, a battery and then a product below.")
else:
    df_products = pd.DataFrame(
        [
            {
                "Model": p.model.name,
                "Battery": f"{p.battery.name} {p.battery.capacity}".strip(),
                "Range (km)": p.range_km,
                "Rate": format_rupee(p.rate),
                "In stock": p.available_quantity,
            }
            for p in catalog.products
        ]
    )
    st.dataframe(df_products, width="stretch", hide_index=True)

    st.subheader("Actions")
    labels = {p.id or p.label: p for p in catalog.products}
    selected_key = st.selectbox(
        "Product",
        options=list(labels.keys()),
        format_func=lambda key: labels[key].label,
    )
    selected: Product = labels[selected_key]

    col_cart, col_stock, col_delete = st.columns([1.2, 1.5, 1])

    with col_cart:
        if st.button("🛒 Add to cart"):
            try:
                cart.add_to_cart(selected, 1)
                st.success(f"Added {selected.label} to cart")
            except CartError as e:
                st.error(str(e))

    with col_stock:
        new_qty = st.number_input(
            "Available quantity",
            min_value=0,
            step=1,
            value=selected.available_quantity,
            key=f"stock_{selected_key}",
        )
        if st.button("Update quantity"):
            with session_guard():
                if catalog.update_stock(selected, int(new_qty)):
                    st.success("Quantity updated")
                else:
                    show_error(catalog.error)

    with col_delete:
        if st.button("🗑️ Delete"):
            confirmation_dialog(
                {"Product": selected.label, "Rate": format_rupee(selected.rate)},
                lambda: catalog.delete_product(selected.id),
                "product_delete_state",
                catalog.error,
            )

st.divider()

# -----------------------------------------------------------------------------
# Add model / battery / product
# -----------------------------------------------------------------------------
with st.expander("➕ Add Model"):
    with st.form("model_form", enter_to_submit=False):
        model_name = st.text_input("Model name")
        accessory_charge = st.number_input("Accessory charge", min_value=0, step=100, value=0)
        if st.form_submit_button("Submit"):
            try:
                model = Model(name=model_name.strip(), accessory_charge=accessory_charge)
            except ModelValidationError as e:
                st.error(str(e))
            else:
                if catalog.find_model(model.name):
                    st.error(f"Model '{model.name}' already exists")
                else:
                    with session_guard():
                        if catalog.create_model(model):
                            st.success(f"Model {model.name} added")
                        else:
                            show_error(catalog.error)

with st.expander("➕ Add Battery"):
    with st.form("battery_form", enter_to_submit=False):
        battery_name = st.text_input("Battery name")
        capacity = st.text_input("Capacity", placeholder="60V 30Ah")
        if st.form_submit_button("Submit"):
            try:
                battery = Battery(name=battery_name.strip(), capacity=capacity.strip())
            except ModelValidationError as e:
                st.error(str(e))
            else:
                with session_guard():
                    if catalog.create_battery(battery):
                        st.success(f"Battery {battery.name} added")
                    else:
                        show_error(catalog.error)

with st.expander("➕ Add Product"):
    if not catalog.models or not catalog.batteries:
        st.info("Add at least one model and one battery first.")
    else:
        with st.form("product_form", enter_to_submit=False):
            model_choice = st.selectbox("Model", [m.name for m in catalog.models], index=None)
            battery_ids = {b.id: b for b in catalog.batteries}
            battery_choice = st.selectbox(
                "Battery",
                list(battery_ids.keys()),
                index=None,
                format_func=lambda key: f"{battery_ids[key].name} - {battery_ids[key].capacity}",
            )
            range_km = st.number_input("Range (km)", min_value=1, step=1, value=60)
            rate = st.number_input("Rate", min_value=1, step=500, value=50000)
            available = st.number_input("Available quantity", min_value=0, step=1, value=0)

            if st.form_submit_button("Submit"):
                model = catalog.find_model(model_choice) if model_choice else None
                battery = catalog.find_battery(battery_choice) if battery_choice else None
                if model is None or battery is None:
                    st.error("Model and battery are required")
                else:
                    try:
                        product = Product(
                            model=model,
                            battery=battery,
                            range_km=int(range_km),
                            rate=rate,
                            available_quantity=int(available),
                        )
                    except ModelValidationError as e:
                        st.error(str(e))
                    else:
                        with session_guard():
                            if catalog.create_product(product):
                                st.success(f"Product {product.label} added")
                            else:
                                show_error(catalog.error)
