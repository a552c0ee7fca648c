# utils/formatting.py
from datetime import date
from typing import Optional, Union

from domain.models import RestoreResult


def format_currency(amount: Union[int, float]) -> str:
    """
    Example: 1234.5 -> "£1,234.50"
    """
    return f"£{amount:,.2f}"


def format_long_date(value: str) -> str:
    """
    "2025-01-15" -> "Wednesday 15 January 2025". Anything that is not an
    ISO date is returned unchanged.
    """
    try:
        d = date.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return f"{d:%A} {d.day} {d:%B %Y}"


def format_file_size(size: Optional[Union[int, str]]) -> str:
    if size is None or size == "":
        return "-"
    size = int(size)
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            break
        value /= 1024
    return f"{round(value, 2):g} {unit}"


def format_restore_summary(result: RestoreResult, max_errors: int = 3) -> str:
    lines = [f"Successfully restored: {result.success_count} files"]
    if result.failed_count:
        lines.append(f"Failed: {result.failed_count} files")
        shown, hidden = result.preview_errors(max_errors)
        if shown:
            lines.append("")
            lines.append("Errors:")
            lines.extend(shown)
            if hidden:
                lines.append(f"... and {hidden} more errors")
    return "\n".join(lines)
