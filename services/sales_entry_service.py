# services/sales_entry_service.py

from datetime import date
from typing import List, Union

from domain.models import ProductLine, SalesRecord, SalesTotals
from domain.products import Product, catalog_by_id


def _count(row: dict, key: str) -> int:
    return max(0, int(row.get(key) or 0))


def build_sales_record_from_rows(
        sales_date: Union[str, date],
        rows: List[dict],
        catalog: List[Product],
) -> SalesRecord:
    """
    Build a SalesRecord from the entry form rows.

    Each row is expected to look like:
      {
        "product_id": int,
        "quantity": int,
        "cash": int,
        "card": int,
        "digital": int,
      }

    Rows with quantity 0 are left out. Money per payment method is units
    sold by that method times the product price.
    """
    if isinstance(sales_date, date):
        sales_date = sales_date.isoformat()
    date.fromisoformat(sales_date)

    products = catalog_by_id(catalog)
    lines: List[ProductLine] = []
    cash = card = digital = 0.0

    for row in rows:
        product_id = int(row["product_id"])
        product = products.get(product_id)
        if product is None:
            raise ValueError(f"Unknown product id: {product_id}")

        quantity = _count(row, "quantity")
        if quantity == 0:
            continue

        line = ProductLine(
            product_id=product_id,
            name=product.name,
            quantity=quantity,
            cash=_count(row, "cash"),
            card=_count(row, "card"),
            digital=_count(row, "digital"),
        )
        lines.append(line)

        cash += line.cash * product.price
        card += line.card * product.price
        digital += line.digital * product.price

    totals = SalesTotals.from_parts(round(cash, 2), round(card, 2), round(digital, 2))
    return SalesRecord(date=sales_date, products=lines, totals=totals)


def add_custom_product(
        catalog: List[Product],
        name: str,
        price: float,
        emoji: str = "🍖",
) -> Product:
    """
    Append a user-defined product to `catalog` and return it.
    """
    name = (name or "").strip()
    if not name or price <= 0:
        raise ValueError("Please enter a valid product name and price.")

    next_id = max((p.id for p in catalog), default=0) + 1
    product = Product(id=next_id, name=name, price=float(price), emoji=emoji, is_custom=True)
    catalog.append(product)
    return product


def remove_custom_product(catalog: List[Product], product_id: int) -> bool:
    """
    Remove a custom product. Built-in products stay.
    """
    for i, product in enumerate(catalog):
        if product.id == product_id and product.is_custom:
            del catalog[i]
            return True
    return False
