from __future__ import annotations

from datetime import date

import pytest

from domain.models import (
    ProductLine,
    RemoteBackupEntry,
    RestoreResult,
    SalesRecord,
    SalesTotals,
    parse_record_date,
    record_file_name,
)


def test_record_file_name_and_parse_are_inverse() -> None:
    assert record_file_name(date(2025, 1, 15)) == "sales_2025-01-15.json"
    assert record_file_name("2025-01-15") == "sales_2025-01-15.json"
    assert parse_record_date("sales_2025-01-15.json") == "2025-01-15"


@pytest.mark.parametrize(
    "name",
    ["notes.txt", "sales_2025-02-30.json", "sales_2025-01-15.json.bak", "xsales_2025-01-15.json", None],
)
def test_parse_record_date_rejects_foreign_names(name) -> None:
    assert parse_record_date(name) is None


def test_record_file_name_rejects_non_dates() -> None:
    with pytest.raises(ValueError):
        record_file_name("15/01/2025")


def test_sales_record_from_backup_dict() -> None:
    record = SalesRecord.from_dict(
        {
            "date": "2025-01-15",
            "products": [{"productId": 1, "quantity": 5, "cash": 2, "card": 2, "digital": 1}],
            "totals": {"cash": 51.98, "card": 51.98, "digital": 25.99},
        }
    )

    assert record.products[0].units_sold == 5
    assert record.totals.total == pytest.approx(129.95)
    assert record.products[0].name is None


@pytest.mark.parametrize(
    "data",
    [
        {"products": [], "totals": {"cash": 0, "card": 0, "digital": 0}},
        {"date": "2025-01-15", "products": []},
        {"date": "2025-01-15", "products": {}, "totals": {"cash": 0, "card": 0, "digital": 0}},
        {
            "date": "2025-01-15",
            "products": [{"productId": 1, "quantity": -1}],
            "totals": {"cash": 0, "card": 0, "digital": 0},
        },
        {
            "date": "2025-01-15",
            "products": [{"productId": "1", "quantity": 1}],
            "totals": {"cash": 0, "card": 0, "digital": 0},
        },
        {
            "date": "2025-01-15",
            "products": [{"productId": 1, "quantity": True}],
            "totals": {"cash": 0, "card": 0, "digital": 0},
        },
        {
            "date": "2025-01-15",
            "products": [{"productId": 1}, {"productId": 1}],
            "totals": {"cash": 0, "card": 0, "digital": 0},
        },
        {"date": "2025-01-15", "products": [], "totals": {"cash": "ten", "card": 0, "digital": 0}},
        [],
    ],
)
def test_sales_record_from_dict_rejects_bad_shapes(data) -> None:
    with pytest.raises(ValueError):
        SalesRecord.from_dict(data)


def test_with_consistent_totals_recomputes_total() -> None:
    record = SalesRecord(date="2025-01-15", totals=SalesTotals(cash=1, card=2, digital=3, total=0))

    fixed = record.with_consistent_totals()

    assert fixed.totals.total == 6
    assert fixed.totals.is_consistent
    assert not record.totals.is_consistent


def test_product_line_keeps_name_when_present() -> None:
    line = ProductLine(product_id=7, quantity=1, cash=1, name="Brownie")

    assert line.to_dict() == {"productId": 7, "name": "Brownie", "quantity": 1, "cash": 1, "card": 0, "digital": 0}
    assert ProductLine.from_dict(line.to_dict()) == line


def test_remote_entry_converts_size() -> None:
    entry = RemoteBackupEntry.from_drive_file({"id": "a", "name": "b.json", "modifiedTime": "t", "size": "2048"})
    assert entry.size_bytes == 2048
    assert RemoteBackupEntry.from_drive_file({"id": "a"}).size_bytes is None


def test_restore_result_preview() -> None:
    result = RestoreResult()
    result.record_success()
    for i in range(5):
        result.record_failure(f"error {i}")

    shown, hidden = result.preview_errors()

    assert result.success_count == 1
    assert result.failed_count == 5
    assert shown == ["error 0", "error 1", "error 2"]
    assert hidden == 2
