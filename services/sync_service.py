# services/sync_service.py
import logging
from datetime import datetime
from typing import List, Optional, Tuple, Union

from domain.errors import InvalidBackupFormat, MalformedPayload, NotConnected
from domain.models import BackupCheck, RemoteBackupEntry, RestoreResult, SalesRecord, StoredFileDescriptor
from .backup_client import BackupStore
from .backup_codec import backup_file_name, decode, dumps, encode, validate
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class SyncService:
    """
    Backup and restore of the local records, to a downloaded file or to a
    remote backup store.

    Restores report per-file outcomes in a RestoreResult instead of
    failing as a whole, so a backup with a few broken entries still
    restores everything else.
    """

    def __init__(self, store: RecordStore, remote: Optional[BackupStore] = None):
        self.store = store
        self.remote = remote

    # -----------------------------------------------------------------------
    # Remote connection
    # -----------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.remote is not None and self.remote.is_authenticated

    def connect(self) -> bool:
        if self.remote is None:
            raise NotConnected("Google Drive API not configured")
        return self.remote.authenticate()

    def disconnect(self) -> None:
        if self.remote is not None:
            self.remote.sign_out()

    def _connected_remote(self) -> BackupStore:
        if self.remote is None:
            raise NotConnected("Google Drive API not configured")
        if not self.remote.is_authenticated:
            raise NotConnected()
        return self.remote

    # -----------------------------------------------------------------------
    # Backup
    # -----------------------------------------------------------------------

    def create_local_backup(self, now: Optional[datetime] = None) -> bytes:
        entries: List[Tuple[StoredFileDescriptor, SalesRecord]] = []
        for descriptor in self.store.list():
            record = self.store.read(descriptor.name)
            if record is None:
                logger.warning("Leaving unreadable %s out of the backup", descriptor.name)
                continue
            entries.append((descriptor, record))

        payload = encode(entries, now=now)
        logger.info("Created backup with %d file(s)", payload.file_count)
        return dumps(payload)

    def sync_to_remote(self, now: Optional[datetime] = None) -> str:
        remote = self._connected_remote()
        return remote.upload_backup(self.create_local_backup(now=now), backup_file_name(now))

    def download_and_sync(self, now: Optional[datetime] = None) -> Tuple[bytes, Optional[str]]:
        """
        Local backup bytes, also uploaded when a remote store is connected.
        Returns (backup bytes, remote file id or None).
        """
        content = self.create_local_backup(now=now)
        file_id = None
        if self.is_connected:
            file_id = self.remote.upload_backup(content, backup_file_name(now))
        return content, file_id

    # -----------------------------------------------------------------------
    # Restore
    # -----------------------------------------------------------------------

    def validate_candidate(self, raw: Union[bytes, str]) -> BackupCheck:
        """
        Read-only check to show before the user confirms a restore.
        """
        try:
            payload = decode(raw)
        except MalformedPayload as e:
            return BackupCheck(valid=False, errors=[str(e)])

        result = validate(payload)
        data = payload.get("data")
        file_count = payload.get("fileCount")
        if isinstance(file_count, bool) or not isinstance(file_count, int) or file_count <= 0:
            file_count = len(data) if isinstance(data, list) else None

        return BackupCheck(
            valid=result.valid,
            file_count=file_count,
            timestamp=payload.get("timestamp"),
            errors=result.errors,
        )

    def restore_from_bytes(self, raw: Union[bytes, str]) -> RestoreResult:
        """
        Write every entry of the backup into the record store, overwriting
        records with the same name. Raises only when the backup cannot be
        parsed or has no data list.
        """
        payload = decode(raw)
        data = payload.get("data")
        if not isinstance(data, list):
            raise InvalidBackupFormat()

        result = RestoreResult()
        for item in data:
            if not isinstance(item, dict):
                item = {}
            file_name = item.get("fileName")
            sales_data = item.get("salesData")

            # an empty salesData is present, and fails at write with the real cause
            if not file_name or sales_data is None:
                result.record_failure(f"Invalid data structure for file: {file_name or 'unknown'}")
                continue

            try:
                self.store.write(file_name, sales_data)
            except Exception as e:
                result.record_failure(f"Failed to restore {file_name}: {e}")
                continue
            result.record_success()

        logger.info(
            "Restore finished: %d restored, %d failed",
            result.success_count,
            result.failed_count,
        )
        return result

    def restore_from_remote(self, file_id: str) -> RestoreResult:
        remote = self._connected_remote()
        return self.restore_from_bytes(remote.download_backup(file_id))

    def list_remote_backups(self) -> List[RemoteBackupEntry]:
        return self._connected_remote().list_backups()

    def delete_remote_backup(self, file_id: str) -> bool:
        return self._connected_remote().delete_backup(file_id)
