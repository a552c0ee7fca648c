# domain/products.py

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class Product:
    id: int
    name: str
    price: float  # per unit, GBP
    emoji: str = "🍖"
    is_custom: bool = False


DEFAULT_PRODUCTS: List[Product] = [
    Product(id=1, name="Chocolate Fudge Cake", price=25.99, emoji="🍫"),
]


def catalog_by_id(catalog: List[Product]) -> Dict[int, Product]:
    return {p.id: p for p in catalog}


def find_product(catalog: List[Product], product_id: int) -> Optional[Product]:
    return catalog_by_id(catalog).get(product_id)
