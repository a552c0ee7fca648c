import json

import pandas as pd
import streamlit as st

from domain.products import DEFAULT_PRODUCTS
from element_component import confirmation_dialog, get_record_store, show_action_status
from services.report_service import product_name, render_docx_report, render_markdown_report
from utils.formatting import format_currency, format_long_date

st.set_page_config(page_title="Sales Records", page_icon="📅")
st.title("📅 Sales Records")

store = get_record_store()
catalog = st.session_state.get("products", DEFAULT_PRODUCTS)

show_action_status("record_delete_state")

files = store.list()
if not files:
    st.info("No sales records yet. Add today's takings on the Daily Takings page.")
    st.stop()

df_files = pd.DataFrame(
    [
        {
            "Date": format_long_date(f.date),
            "File": f.name,
            "Last modified": f.last_modified.astimezone().strftime("%d/%m/%Y %H:%M"),
        }
        for f in files
    ]
)
st.dataframe(df_files, width="stretch", hide_index=True)

st.divider()

# -----------------------------------------------------------------------------
# Selected record
# -----------------------------------------------------------------------------
selected = st.selectbox(
    "Open record",
    options=[f.name for f in files],
    format_func=lambda name: format_long_date(next(f.date for f in files if f.name == name)),
)

record = store.read(selected)
if record is None:
    st.error(f"Failed to load sales data from {selected}.")
    st.stop()

st.subheader(format_long_date(record.date))

col_cash, col_card, col_digital, col_total = st.columns(4)
col_cash.metric("💵 Cash", format_currency(record.totals.cash))
col_card.metric("💳 Card", format_currency(record.totals.card))
col_digital.metric("📱 Digital", format_currency(record.totals.digital))
col_total.metric("💰 Total", format_currency(record.totals.total))

if record.products:
    df_products = pd.DataFrame(
        [
            {
                "Product": product_name(line, catalog),
                "Quantity": line.quantity,
                "Cash": line.cash,
                "Card": line.card,
                "Digital": line.digital,
            }
            for line in record.products
        ]
    )
    st.dataframe(df_products, width="stretch", hide_index=True)
else:
    st.caption("No products sold on this date.")

col_md, col_docx, col_json = st.columns(3)
with col_md:
    st.download_button(
        "Report (Markdown)",
        data=render_markdown_report(record, catalog).encode("utf-8"),
        file_name=f"daily-sales-report-{record.date}.md",
        mime="text/markdown",
    )
with col_docx:
    st.download_button(
        "Report (Word)",
        data=render_docx_report(record, catalog, selected),
        file_name=f"daily-sales-report-{record.date}.docx",
        mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )
with col_json:
    st.download_button(
        "Raw JSON",
        data=json.dumps(record.to_dict(), indent=2).encode("utf-8"),
        file_name=selected,
        mime="application/json",
    )

st.divider()


def _delete_selected():
    if store.delete(selected):
        return True, f"Deleted {selected}"
    return False, f"Failed to delete {selected}"


if st.button("🗑️ Delete record"):
    confirmation_dialog(
        f"Are you sure you want to delete {selected}? This action cannot be undone.",
        None,
        _delete_selected,
        "record_delete_state",
    )
