# domain/models.py

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

RECORD_NAME_PATTERN = re.compile(r"^sales_(\d{4}-\d{2}-\d{2})\.json$")

Number = Union[int, float]


def record_file_name(sales_date: Union[str, date]) -> str:
    """
    Storage name for one day's record, e.g. "sales_2025-01-15.json".
    Raises ValueError when `sales_date` is not an ISO calendar date.
    """
    if isinstance(sales_date, date):
        sales_date = sales_date.isoformat()
    date.fromisoformat(sales_date)
    return f"sales_{sales_date}.json"


def parse_record_date(name: str) -> Optional[str]:
    """
    Inverse of record_file_name. Names outside the convention give None.
    """
    match = RECORD_NAME_PATTERN.match(name or "")
    if not match:
        return None
    try:
        date.fromisoformat(match.group(1))
    except ValueError:
        return None
    return match.group(1)


def _count(data: Dict[str, Any], key: str) -> int:
    value = data.get(key, 0)
    # bool is an int subclass, keep it out
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def _amount(data: Dict[str, Any], key: str) -> Number:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"totals.{key} must be a number, got {value!r}")
    return value


@dataclass
class ProductLine:
    """
    Unit counts sold for one product on one day. `quantity` is what the
    user typed as the overall count; it is not checked against the
    per-method split.
    """
    product_id: int
    quantity: int = 0
    cash: int = 0
    card: int = 0
    digital: int = 0
    name: Optional[str] = None

    @property
    def units_sold(self) -> int:
        return self.cash + self.card + self.digital

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"productId": self.product_id}
        if self.name is not None:
            out["name"] = self.name
        out.update(
            quantity=self.quantity,
            cash=self.cash,
            card=self.card,
            digital=self.digital,
        )
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductLine":
        if not isinstance(data, dict):
            raise ValueError(f"product line must be an object, got {type(data).__name__}")
        product_id = data.get("productId")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValueError(f"productId must be an integer, got {product_id!r}")
        name = data.get("name")
        return cls(
            product_id=product_id,
            quantity=_count(data, "quantity"),
            cash=_count(data, "cash"),
            card=_count(data, "card"),
            digital=_count(data, "digital"),
            name=name if isinstance(name, str) else None,
        )


@dataclass
class SalesTotals:
    cash: Number = 0
    card: Number = 0
    digital: Number = 0
    total: Number = 0

    @classmethod
    def from_parts(cls, cash: Number, card: Number, digital: Number) -> "SalesTotals":
        return cls(cash=cash, card=card, digital=digital, total=cash + card + digital)

    @property
    def is_consistent(self) -> bool:
        return self.total == self.cash + self.card + self.digital

    def to_dict(self) -> Dict[str, Number]:
        return {
            "cash": self.cash,
            "card": self.card,
            "digital": self.digital,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SalesTotals":
        if not isinstance(data, dict):
            raise ValueError("totals must be an object")
        cash = _amount(data, "cash")
        card = _amount(data, "card")
        digital = _amount(data, "digital")
        if data.get("total") is None:
            return cls.from_parts(cash, card, digital)
        return cls(cash=cash, card=card, digital=digital, total=_amount(data, "total"))


@dataclass
class SalesRecord:
    """
    One calendar day of sales. `totals` is derived from the products and
    the catalog prices at entry time; it is cached, not authoritative.
    """
    date: str
    products: List[ProductLine] = field(default_factory=list)
    totals: SalesTotals = field(default_factory=SalesTotals)

    def with_consistent_totals(self) -> "SalesRecord":
        t = self.totals
        return replace(self, totals=SalesTotals.from_parts(t.cash, t.card, t.digital))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "products": [p.to_dict() for p in self.products],
            "totals": self.totals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SalesRecord":
        if not isinstance(data, dict):
            raise ValueError("sales record must be an object")

        sales_date = data.get("date")
        if not isinstance(sales_date, str):
            raise ValueError("Missing date")
        date.fromisoformat(sales_date)

        raw_products = data.get("products", [])
        if not isinstance(raw_products, list):
            raise ValueError("products must be a list")
        products = [ProductLine.from_dict(p) for p in raw_products]

        ids = [p.product_id for p in products]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate productId in record for {sales_date}")

        if "totals" not in data:
            raise ValueError("Missing totals")

        return cls(
            date=sales_date,
            products=products,
            totals=SalesTotals.from_dict(data["totals"]),
        )


@dataclass
class StoredFileDescriptor:
    name: str
    date: str
    last_modified: datetime  # tz-aware, UTC
    size_bytes: int = 0


# ---------------------------------------------------------------------------
# Backup payload
# ---------------------------------------------------------------------------

@dataclass
class BackupEntry:
    file_name: str
    date: str
    last_modified: str  # ISO 8601
    sales_data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "date": self.date,
            "lastModified": self.last_modified,
            "salesData": self.sales_data,
        }


@dataclass
class BackupPayload:
    timestamp: str
    version: str
    file_count: int
    data: List[BackupEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "version": self.version,
            "fileCount": self.file_count,
            "data": [entry.to_dict() for entry in self.data],
        }


@dataclass
class RemoteBackupEntry:
    id: str
    name: str
    modified_time: Optional[str] = None
    size_bytes: Optional[int] = None

    @classmethod
    def from_drive_file(cls, f: Dict[str, Any]) -> "RemoteBackupEntry":
        size = f.get("size")
        return cls(
            id=f["id"],
            name=f.get("name", ""),
            modified_time=f.get("modifiedTime"),
            # Drive reports size as a decimal string
            size_bytes=int(size) if size is not None else None,
        )


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

@dataclass
class RestoreResult:
    success_count: int = 0
    failed_count: int = 0
    errors: List[str] = field(default_factory=list)

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, message: str) -> None:
        self.failed_count += 1
        self.errors.append(message)

    def preview_errors(self, limit: int = 3) -> Tuple[List[str], int]:
        """
        First `limit` errors plus how many were left out.
        """
        shown = self.errors[:limit]
        return shown, len(self.errors) - len(shown)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class BackupCheck:
    """
    Pre-flight summary shown before the user confirms a restore.
    """
    valid: bool
    file_count: Optional[int] = None
    timestamp: Optional[str] = None
    errors: List[str] = field(default_factory=list)
