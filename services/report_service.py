# services/report_service.py

import io
from datetime import datetime
from typing import List, Optional

from docx import Document
from docx.shared import Pt

from domain.models import ProductLine, SalesRecord
from domain.products import Product, catalog_by_id
from utils.formatting import format_currency, format_long_date

PAYMENT_METHODS = [
    ("💵 Cash", "cash"),
    ("💳 Card", "card"),
    ("📱 Digital", "digital"),
]


def product_name(line: ProductLine, catalog: List[Product]) -> str:
    if line.name:
        return line.name
    product = catalog_by_id(catalog).get(line.product_id)
    return product.name if product else f"Product {line.product_id}"


def total_items_sold(record: SalesRecord) -> int:
    return sum(p.quantity for p in record.products)


def average_per_item(record: SalesRecord) -> float:
    items = total_items_sold(record)
    return record.totals.total / items if items else 0.0


def product_revenue(line: ProductLine, record: SalesRecord, catalog: List[Product]) -> float:
    """
    Units sold times the catalog price. Products that are no longer in the
    catalog get their share of the day's total by quantity.
    """
    product = catalog_by_id(catalog).get(line.product_id)
    if product is not None:
        return line.units_sold * product.price
    items = total_items_sold(record)
    return line.units_sold * (record.totals.total / items) if items else 0.0


def _top_product(record: SalesRecord, catalog: List[Product]) -> str:
    if not record.products:
        return "N/A"
    best = max(record.products, key=lambda p: product_revenue(p, record, catalog))
    return product_name(best, catalog)


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def render_markdown_report(
        record: SalesRecord,
        catalog: List[Product],
        generated_at: Optional[datetime] = None,
) -> str:
    generated_at = generated_at or datetime.now()
    products = catalog_by_id(catalog)

    out = ["# Daily Sales Report", ""]
    out.append(f"**Generated:** {generated_at:%d/%m/%Y %H:%M:%S}")
    out.append(f"**Sales Date:** {record.date}")
    out.append("")

    out.append("## Products Sold")
    out.append("")
    if not record.products:
        out.append("No products sold on this date.")
    else:
        out.append("| Product | Emoji | Price | Cash | Card | Digital | Total Qty | Revenue |")
        out.append("|---------|-------|-------|------|------|---------|-----------|---------|")
        for line in record.products:
            product = products.get(line.product_id)
            emoji = product.emoji if product else ""
            price = format_currency(product.price) if product else "-"
            out.append(
                f"| {product_name(line, catalog)} | {emoji} | {price} | {line.cash} | {line.card} "
                f"| {line.digital} | {line.units_sold} "
                f"| {format_currency(product_revenue(line, record, catalog))} |"
            )
    out.append("")

    out.append("## Payment Method Summary")
    out.append("")
    out.append("| Payment Method | Amount |")
    out.append("|----------------|--------|")
    for label, attr in PAYMENT_METHODS:
        out.append(f"| {label} | {format_currency(getattr(record.totals, attr))} |")
    out.append(f"| **💰 Total** | **{format_currency(record.totals.total)}** |")
    out.append("")

    out.append("## Report Details")
    out.append("")
    out.append(f"- **Total Products Sold:** {sum(p.units_sold for p in record.products)}")
    out.append(f"- **Number of Different Products:** {len(record.products)}")
    out.append(f"- **Highest Revenue Product:** {_top_product(record, catalog)}")
    out.append("")
    return "\n".join(out)


# ---------------------------------------------------------------------------
# Word
# ---------------------------------------------------------------------------

def render_docx_report(
        record: SalesRecord,
        catalog: List[Product],
        file_name: str,
        generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Same content as the markdown report, as a .docx for printing.
    """
    generated_at = generated_at or datetime.now()
    doc = Document()

    doc.add_heading("Daily Sales Report", level=0)
    doc.add_paragraph(format_long_date(record.date))
    small = doc.add_paragraph().add_run(f"File: {file_name}")
    small.font.size = Pt(9)

    doc.add_heading("Payment Method Summary", level=1)
    totals_table = doc.add_table(rows=1, cols=2)
    totals_table.style = "Table Grid"
    header = totals_table.rows[0].cells
    header[0].text = "Payment Method"
    header[1].text = "Amount"
    for label, attr in PAYMENT_METHODS + [("💰 Total", "total")]:
        cells = totals_table.add_row().cells
        cells[0].text = label
        cells[1].text = format_currency(getattr(record.totals, attr))

    doc.add_heading("Products Sold", level=1)
    if not record.products:
        doc.add_paragraph("No products sold on this date.")
    else:
        columns = ["Product", "Quantity", "Cash", "Card", "Digital", "Revenue"]
        table = doc.add_table(rows=1, cols=len(columns))
        table.style = "Table Grid"
        for cell, title in zip(table.rows[0].cells, columns):
            cell.text = title
        for line in record.products:
            values = [
                product_name(line, catalog),
                str(line.quantity),
                str(line.cash),
                str(line.card),
                str(line.digital),
                format_currency(product_revenue(line, record, catalog)),
            ]
            for cell, value in zip(table.add_row().cells, values):
                cell.text = value

    doc.add_heading("Report Details", level=1)
    doc.add_paragraph(f"Total Items Sold: {total_items_sold(record)}", style="List Bullet")
    doc.add_paragraph(f"Number of Different Products: {len(record.products)}", style="List Bullet")
    doc.add_paragraph(f"Average per Item: {format_currency(average_per_item(record))}", style="List Bullet")
    doc.add_paragraph(f"Highest Revenue Product: {_top_product(record, catalog)}", style="List Bullet")

    footer = doc.add_paragraph().add_run(
        f"Generated on {generated_at:%d/%m/%Y} at {generated_at:%H:%M:%S} | Daily Takings Sales System"
    )
    footer.font.size = Pt(8)

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()
