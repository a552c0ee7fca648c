# services/record_store.py
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from domain.errors import InvalidRecordName
from domain.models import SalesRecord, StoredFileDescriptor, parse_record_date

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Per-day sales records kept as JSON files in one directory.

    Listing and reading are best effort: problems are logged and come back
    as an empty list or None. Writing raises.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def _path_for(self, name: str) -> Path:
        # the name pattern has no separators, so this also keeps writes
        # inside root
        if parse_record_date(name) is None:
            raise InvalidRecordName(f"Invalid record name: {name!r}")
        return self.root / name

    def list(self) -> List[StoredFileDescriptor]:
        """
        Records sorted by last modification, most recent first.
        """
        try:
            paths = list(self.root.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Error listing sales files in %s: %s", self.root, e)
            return []

        files: List[StoredFileDescriptor] = []
        for path in paths:
            sales_date = parse_record_date(path.name)
            if sales_date is None:
                continue
            try:
                if not path.is_file():
                    continue
                stat = path.stat()
            except OSError as e:
                logger.warning("Skipping %s: %s", path.name, e)
                continue

            files.append(
                StoredFileDescriptor(
                    name=path.name,
                    date=sales_date,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    size_bytes=stat.st_size,
                )
            )

        files.sort(key=lambda f: f.last_modified, reverse=True)
        return files

    def exists(self, name: str) -> bool:
        try:
            return self._path_for(name).is_file()
        except InvalidRecordName:
            return False

    def read(self, name: str) -> Optional[SalesRecord]:
        """
        Missing, unreadable and malformed records all come back as None.
        """
        try:
            path = self._path_for(name)
        except InvalidRecordName as e:
            logger.warning("%s", e)
            return None

        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Sales file %s does not exist", name)
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error reading sales file %s: %s", name, e)
            return None

        try:
            return SalesRecord.from_dict(json.loads(content))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning("Sales file %s is not a valid record: %s", name, e)
            return None

    def write(self, name: str, record: Union[SalesRecord, Dict[str, Any]]) -> None:
        """
        Create or overwrite `name`. `record` may be a SalesRecord or the
        JSON dict form found in a backup.

        The file is written next to its final location and renamed into
        place, so readers never see half a record.
        """
        path = self._path_for(name)
        if not isinstance(record, SalesRecord):
            record = SalesRecord.from_dict(record)
        record = record.with_consistent_totals()
        content = json.dumps(record.to_dict(), indent=2, ensure_ascii=False)

        with self._lock_for(name):
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise

        logger.info("Saved sales file %s", name)

    def delete(self, name: str) -> bool:
        if parse_record_date(name) is None:
            return False

        try:
            with self._lock_for(name):
                (self.root / name).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Error deleting sales file %s: %s", name, e)
            return False

        logger.info("Deleted sales file %s", name)
        return True
