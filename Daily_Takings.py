import logging
from copy import deepcopy
from datetime import date

import streamlit as st

from domain.models import record_file_name
from domain.products import DEFAULT_PRODUCTS
from element_component import get_record_store
from services.report_service import render_markdown_report
from services.sales_entry_service import add_custom_product, build_sales_record_from_rows, remove_custom_product
from utils.formatting import format_currency

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(
    page_title="Daily Takings",
    page_icon="💷"
)

st.sidebar.header("💷 Daily Sales Entry")

if "products" not in st.session_state:
    st.session_state["products"] = deepcopy(DEFAULT_PRODUCTS)

if "saved_record" not in st.session_state:
    st.session_state["saved_record"] = None

products = st.session_state["products"]
store = get_record_store()

st.title("💷 Daily Sales Entry")

sales_date = st.date_input("Sales date", value=date.today(), max_value=date.today())
file_name = record_file_name(sales_date)

if store.exists(file_name):
    st.warning(f"Sales for {sales_date.isoformat()} are already saved. Submitting will overwrite them.")

# -----------------------------------------------------------------------------
# Custom products
# -----------------------------------------------------------------------------
with st.expander("➕ Add custom product"):
    with st.form("custom_product_form", enter_to_submit=False):
        col_name, col_price, col_emoji = st.columns([3, 1.5, 1])
        with col_name:
            new_name = st.text_input("Name")
        with col_price:
            new_price = st.number_input("Price (£)", min_value=0.0, step=0.5, format="%.2f")
        with col_emoji:
            new_emoji = st.text_input("Emoji", value="🍖", max_chars=2)

        if st.form_submit_button("Add product"):
            try:
                added = add_custom_product(products, new_name, new_price, new_emoji)
                st.success(f"Added {added.emoji} {added.name}")
            except ValueError as e:
                st.error(str(e))

    custom = [p for p in products if p.is_custom]
    if custom:
        to_remove = st.selectbox(
            "Remove custom product",
            options=[None] + [p.id for p in custom],
            format_func=lambda pid: "-" if pid is None else next(p.name for p in custom if p.id == pid),
        )
        if to_remove is not None and st.button("Remove"):
            remove_custom_product(products, to_remove)
            st.rerun()

# -----------------------------------------------------------------------------
# Entry form
# -----------------------------------------------------------------------------
with st.form("sales_entry_form", enter_to_submit=False):
    rows = []
    for product in products:
        st.markdown(f"**{product.emoji} {product.name}** ({format_currency(product.price)})")
        col_qty, col_cash, col_card, col_digital = st.columns(4)
        with col_qty:
            qty = st.number_input("Quantity", min_value=0, step=1, key=f"qty_{product.id}")
        with col_cash:
            cash = st.number_input("💵 Cash", min_value=0, step=1, key=f"cash_{product.id}")
        with col_card:
            card = st.number_input("💳 Card", min_value=0, step=1, key=f"card_{product.id}")
        with col_digital:
            digital = st.number_input("📱 Digital", min_value=0, step=1, key=f"digital_{product.id}")

        if qty and cash + card + digital != qty:
            st.caption(f"Cash + card + digital ({cash + card + digital}) does not match quantity ({qty}).")

        rows.append({"product_id": product.id, "quantity": qty, "cash": cash, "card": card, "digital": digital})

    submitted = st.form_submit_button("Save daily sales", type="primary")

if submitted:
    record = build_sales_record_from_rows(sales_date, rows, products)
    if not record.products:
        st.error("Enter a quantity for at least one product.")
    else:
        try:
            store.write(file_name, record)
        except OSError as e:
            st.error(f"Failed to save {file_name}: {e}")
        else:
            st.session_state["saved_record"] = record

saved = st.session_state["saved_record"]
if saved is not None:
    st.success(f"Sales for {saved.date} saved.")
    col_cash, col_card, col_digital, col_total = st.columns(4)
    col_cash.metric("💵 Cash", format_currency(saved.totals.cash))
    col_card.metric("💳 Card", format_currency(saved.totals.card))
    col_digital.metric("📱 Digital", format_currency(saved.totals.digital))
    col_total.metric("💰 Total", format_currency(saved.totals.total))

    st.download_button(
        "Download report (Markdown)",
        data=render_markdown_report(saved, products).encode("utf-8"),
        file_name=f"daily-sales-report-{saved.date}.md",
        mime="text/markdown",
    )
