import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

import pandas as pd
import streamlit as st

from api_client import ApiClient, SessionContext, SessionExpiredError
from services.cart_service import Cart
from services.catalog_service import CatalogStore
from services.error_state import ErrorSlot
from services.receipt_query_service import ReceiptQuery
from services.receipt_service import ReceiptStore

logger = logging.getLogger(__name__)

# Everything that lives for one browser session and dies with the login.
VOLATILE_KEYS = (
    "cart",
    "catalog",
    "catalog_loaded",
    "receipts",
    "receipt_query",
    "unit_details",
    "pending_receipt_number",
    "receipt_submitting",
)


def _reset_volatile_state() -> None:
    for key in VOLATILE_KEYS:
        st.session_state.pop(key, None)


def get_client() -> ApiClient:
    """
    One SessionContext + ApiClient per browser session. Ending the session
    (logout or any 401) drops the cart and every cached store with it.
    """
    if "api_client" not in st.session_state:
        session = SessionContext()
        session.on_invalidate(_reset_volatile_state)
        st.session_state["api_client"] = ApiClient(session)
    return st.session_state["api_client"]


def get_cart() -> Cart:
    if "cart" not in st.session_state:
        st.session_state["cart"] = Cart()
    return st.session_state["cart"]


def get_catalog() -> CatalogStore:
    if "catalog" not in st.session_state:
        st.session_state["catalog"] = CatalogStore(get_client(), ErrorSlot())
    return st.session_state["catalog"]


def get_receipt_store() -> ReceiptStore:
    if "receipts" not in st.session_state:
        st.session_state["receipts"] = ReceiptStore(get_client(), ErrorSlot())
    return st.session_state["receipts"]


def get_receipt_query() -> ReceiptQuery:
    if "receipt_query" not in st.session_state:
        st.session_state["receipt_query"] = ReceiptQuery(get_client(), ErrorSlot())
    return st.session_state["receipt_query"]


def require_login() -> None:
    """Stop rendering a page for anyone who is not logged in."""
    if not get_client().session.is_authenticated:
        st.warning("Please log in from the Dashboard page first.")
        st.stop()


@contextmanager
def session_guard():
    """
    Wrap remote calls on a page. A 401 has already cleared the token inside
    the client; here the page just reruns so the login view shows up.
    """
    try:
        yield
    except SessionExpiredError as e:
        logger.info("Session expired during page run: %s", e)
        st.session_state["login_notice"] = str(e)
        st.rerun()


def show_error(slot: ErrorSlot) -> None:
    message = slot.message
    if message:
        st.error(message)


@st.dialog("Confirm")
def confirmation_dialog(
        value: Dict[str, Any],
        on_confirm: Callable[[], bool],
        state_name: str,
        errors: Optional[ErrorSlot] = None,
):
    """
    Show `value` as a key/value table and run `on_confirm` on "Yes".
    `on_confirm` returns True on success; the result lands in session_state[state_name].
    """
    df = pd.DataFrame([(k, str(v)) for k, v in value.items()], columns=["Field", "Value"])
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Yes", type="primary", key="confirm_yes"):
            with session_guard():
                status = on_confirm()
            st.session_state[state_name] = status
            if status:
                st.rerun()
            elif errors is not None:
                show_error(errors)
    with col_no:
        if st.button("No"):
            st.rerun()
