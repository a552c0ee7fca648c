# services/backup_codec.py
"""
Conversion between local sales records and the single JSON document that
is downloaded locally or uploaded to Google Drive.

Backup document layout:

    {
      "timestamp": "2025-01-15T18:02:11.120000+00:00",
      "version": "1.0",
      "fileCount": 2,
      "data": [
        {"fileName": "sales_2025-01-15.json", "date": "2025-01-15",
         "lastModified": "...", "salesData": {...}},
        ...
      ]
    }
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from domain.errors import MalformedPayload
from domain.models import (
    BackupEntry,
    BackupPayload,
    SalesRecord,
    StoredFileDescriptor,
    ValidationResult,
)

BACKUP_VERSION = "1.0"
BACKUP_NAME_PREFIX = "daily-takings-backup"

# validate() only samples the head of `data`
VALIDATION_PREVIEW_COUNT = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backup_file_name(now: Optional[datetime] = None) -> str:
    """
    e.g. "daily-takings-backup-2025-01-15.json". One name per calendar day,
    so repeated backups on the same day replace each other remotely.
    """
    now = now or _utcnow()
    return f"{BACKUP_NAME_PREFIX}-{now.date().isoformat()}.json"


def encode(
    entries: Iterable[Tuple[StoredFileDescriptor, SalesRecord]],
    now: Optional[datetime] = None,
) -> BackupPayload:
    """
    Build a payload in the order `entries` are given; nothing is re-sorted.
    """
    data: List[BackupEntry] = []
    for descriptor, record in entries:
        data.append(
            BackupEntry(
                file_name=descriptor.name,
                date=descriptor.date,
                last_modified=descriptor.last_modified.isoformat(),
                sales_data=record.to_dict(),
            )
        )

    return BackupPayload(
        timestamp=(now or _utcnow()).isoformat(),
        version=BACKUP_VERSION,
        file_count=len(data),
        data=data,
    )


def dumps(payload: BackupPayload) -> bytes:
    return json.dumps(payload.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def decode(raw: Union[bytes, str]) -> Dict[str, Any]:
    """
    Parse backup bytes into a plain dict. Only checks that the content is a
    JSON object; use validate() for the structure.
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        parsed = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedPayload() from e

    if not isinstance(parsed, dict):
        raise MalformedPayload("Backup file must contain a JSON object")
    return parsed


def validate(payload: Dict[str, Any]) -> ValidationResult:
    """
    Report every structural problem found, without stopping at the first.

    Only the first VALIDATION_PREVIEW_COUNT items of `data` are inspected,
    so a valid result says nothing about the items after them.
    """
    errors: List[str] = []

    if not payload.get("timestamp"):
        errors.append("Missing timestamp")
    if not payload.get("version"):
        errors.append("Missing version")

    data = payload.get("data")
    if not isinstance(data, list):
        errors.append("Missing or invalid data array")
        data = []

    for i, item in enumerate(data[:VALIDATION_PREVIEW_COUNT], start=1):
        if not isinstance(item, dict):
            item = {}
        if not item.get("fileName"):
            errors.append(f"Item {i}: Missing fileName")
        if item.get("salesData") is None:
            errors.append(f"Item {i}: Missing salesData")

    return ValidationResult(valid=not errors, errors=errors)
