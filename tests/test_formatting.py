import pytest

from domain.models import RestoreResult
from utils.formatting import format_currency, format_file_size, format_long_date, format_restore_summary


@pytest.mark.parametrize(
    "amount, expected",
    [(0, "£0.00"), (1234.5, "£1,234.50"), (25.99, "£25.99")],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_format_long_date():
    assert format_long_date("2025-01-15") == "Wednesday 15 January 2025"
    assert format_long_date("not a date") == "not a date"


@pytest.mark.parametrize(
    "size, expected",
    [(None, "-"), (0, "0 B"), (500, "500 B"), (1024, "1 KB"), (1536, "1.5 KB"), ("2097152", "2 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_restore_summary_all_good():
    result = RestoreResult(success_count=4)

    assert format_restore_summary(result) == "Successfully restored: 4 files"


def test_restore_summary_truncates_errors():
    result = RestoreResult(success_count=1)
    for name in ["a", "b", "c", "d", "e"]:
        result.record_failure(f"Failed to restore {name}")

    assert format_restore_summary(result).splitlines() == [
        "Successfully restored: 1 files",
        "Failed: 5 files",
        "",
        "Errors:",
        "Failed to restore a",
        "Failed to restore b",
        "Failed to restore c",
        "... and 2 more errors",
    ]
