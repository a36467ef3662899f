import streamlit as st

from element_component import get_cart, require_login
from utils.formatting import format_rupee

# -----------------------------------------------------------------------------
# Page config
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Place Order", page_icon="🛒")
st.title("🛒 Place Order")

require_login()
cart = get_cart()

if cart.is_empty:
    st.info("Cart is empty. Add products from the Dashboard.")
    st.stop()

# -----------------------------------------------------------------------------
# Cart lines
# -----------------------------------------------------------------------------
header = st.columns([3, 1.2, 1.6, 1.5, 0.8])
for col, title in zip(header, ["Product", "Rate", "Qty", "Line total", ""]):
    col.markdown(f"**{title}**")

for index, line in enumerate(list(cart.items)):
    product = line.product
    model_name, battery_name = product.composite_key
    col_name, col_rate, col_qty, col_total, col_remove = st.columns([3, 1.2, 1.6, 1.5, 0.8])

    col_name.write(f"{product.label} ({product.range_km} km)")
    col_rate.write(format_rupee(product.rate))

    with col_qty:
        minus, count, plus = st.columns(3)
        if minus.button("➖", key=f"minus_{index}"):
            # going below one removes the line
            if line.quantity <= 1:
                cart.remove_from_cart(model_name, battery_name, product.id)
            else:
                cart.update_quantity(model_name, battery_name, line.quantity - 1, product.id)
            st.rerun()
        count.write(str(line.quantity))
        if plus.button("➕", key=f"plus_{index}"):
            cart.update_quantity(model_name, battery_name, line.quantity + 1, product.id)
            st.rerun()

    col_total.write(format_rupee(line.line_total))

    if col_remove.button("🗑️", key=f"remove_{index}"):
        cart.remove_from_cart(model_name, battery_name, product.id)
        st.rerun()

st.divider()

col_sum, col_clear, col_next = st.columns([2, 1, 1.5])
col_sum.metric("Total", format_rupee(cart.total), f"{cart.unit_count} unit(s)", delta_color="off")

if col_clear.button("Clear cart"):
    cart.clear()
    st.rerun()

if col_next.button("Proceed to receipt ➡️", type="primary"):
    st.switch_page("pages/2_Generate_Receipt.py")
