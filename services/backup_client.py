# services/backup_client.py
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, TypeVar, Union

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from domain.errors import (
    AuthFailed,
    AuthFailureReason,
    ContainerCreationFailed,
    DownloadFailed,
    NotAuthenticated,
    UploadFailed,
)
from domain.models import RemoteBackupEntry
from google_client import TokenStore, build_drive_service, refresh_if_needed, revoke_token
from .backup_codec import BACKUP_NAME_PREFIX
from .drive_service import (
    create_folder,
    delete_file,
    download_file,
    find_folder_by_name,
    get_file,
    http_status,
    list_files_in_folder,
    update_file_content,
    upload_file_to_folder,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FOLDER_NAME = "Daily Takings Backups"
BACKUP_MIMETYPE = "application/json"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class BackupStore(Protocol):
    """
    What the sync service needs from a remote backup location.
    """

    @property
    def is_authenticated(self) -> bool: ...

    def authenticate(self, force_consent: bool = False) -> bool: ...

    def sign_out(self) -> None: ...

    def list_backups(self) -> List[RemoteBackupEntry]: ...

    def upload_backup(self, payload: bytes, file_name: str) -> str: ...

    def download_backup(self, file_id: str) -> bytes: ...

    def delete_backup(self, file_id: str) -> bool: ...

    def get_backup_info(self, file_id: str) -> Optional[RemoteBackupEntry]: ...


class DriveBackupClient:
    """
    Backups stored as JSON files in one Google Drive folder.

    The credential, the Drive service and the folder id belong to the
    signed-in session and are dropped together. Every data call requires
    a signed-in session and raises NotAuthenticated before touching Drive
    otherwise.
    """

    def __init__(
        self,
        authorizer: Callable[[], Credentials],
        service_factory: Callable[[Credentials], Resource] = build_drive_service,
        token_store: Optional[TokenStore] = None,
        folder_name: str = DEFAULT_FOLDER_NAME,
        auth_timeout_seconds: float = 30.0,
        revoke: Callable[[Optional[Credentials]], bool] = revoke_token,
    ):
        self.folder_name = folder_name
        self.auth_timeout_seconds = auth_timeout_seconds
        self.state = AuthState.UNAUTHENTICATED

        self._authorizer = authorizer
        self._service_factory = service_factory
        self._token_store = token_store
        self._revoke = revoke

        self._creds: Optional[Credentials] = None
        self._drive: Optional[Resource] = None
        self._folder_id: Optional[str] = None

        self._state_lock = threading.RLock()
        self._upload_locks: Dict[str, threading.Lock] = {}
        self._upload_locks_guard = threading.Lock()

    # -----------------------------------------------------------------------
    # Session
    # -----------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED and self._drive is not None

    def authenticate(self, force_consent: bool = False) -> bool:
        """
        Sign in, reusing a stored token when one is still usable. Returns
        True on success and raises AuthFailed otherwise.

        With `force_consent` the stored token is ignored and the consent
        flow always runs.
        """
        with self._state_lock:
            if self.is_authenticated:
                return True

            self.state = AuthState.AUTHENTICATING
            try:
                creds = None if force_consent else self._stored_credentials()
                if creds is None:
                    creds = self._run_authorizer()
                drive = self._build_service(creds)
            except BaseException:
                self.state = AuthState.UNAUTHENTICATED
                raise

            self._creds = creds
            self._drive = drive
            self._folder_id = None
            self.state = AuthState.AUTHENTICATED
            if self._token_store is not None:
                self._token_store.save(creds)

        logger.info("Connected to Google Drive")
        return True

    def sign_out(self) -> None:
        with self._state_lock:
            creds = self._creds
            self._drop_session()
            if self._token_store is not None:
                self._token_store.clear()

        if creds is not None:
            self._revoke(creds)
        logger.info("Disconnected from Google Drive")

    def _drop_session(self) -> None:
        self._creds = None
        self._drive = None
        self._folder_id = None
        self.state = AuthState.UNAUTHENTICATED

    def _stored_credentials(self) -> Optional[Credentials]:
        if self._token_store is None:
            return None
        return refresh_if_needed(self._token_store.load())

    def _run_authorizer(self) -> Credentials:
        # The consent page can be blocked or abandoned; never wait on it
        # for longer than auth_timeout_seconds.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="google-consent")
        future = executor.submit(self._authorizer)
        try:
            creds = future.result(timeout=self.auth_timeout_seconds)
        except FuturesTimeout as e:
            raise AuthFailed(
                AuthFailureReason.TIMEOUT,
                "Google sign-in timed out. Allow the sign-in window and try again.",
            ) from e
        except AuthFailed:
            raise
        except Exception as e:
            raise AuthFailed(
                AuthFailureReason.CONSENT_DENIED,
                f"Google sign-in did not complete: {e}",
            ) from e
        finally:
            executor.shutdown(wait=False)

        if creds is None:
            raise AuthFailed(AuthFailureReason.CONSENT_DENIED)
        return creds

    def _build_service(self, creds: Credentials) -> Resource:
        try:
            return self._service_factory(creds)
        except Exception as e:
            raise AuthFailed(
                AuthFailureReason.CONFIGURATION_INVALID,
                f"Could not create Google Drive client: {e}",
            ) from e

    def _require_auth(self) -> None:
        if not self.is_authenticated:
            raise NotAuthenticated()

    def _call(self, operation: Callable[[Resource], T]) -> T:
        """
        Run one Drive request. A 401 means the token went stale: sign in
        again once and repeat the request.
        """
        self._require_auth()
        try:
            return operation(self._drive)
        except HttpError as e:
            if http_status(e) != 401:
                raise
            logger.info("Google Drive rejected the access token, signing in again")
            with self._state_lock:
                self._drop_session()
            # the stored token is the one Drive just rejected
            self.authenticate(force_consent=True)
            return operation(self._drive)

    def _upload_lock(self, file_name: str) -> threading.Lock:
        with self._upload_locks_guard:
            return self._upload_locks.setdefault(file_name, threading.Lock())

    # -----------------------------------------------------------------------
    # Backup folder
    # -----------------------------------------------------------------------

    def find_or_create_backup_folder(self) -> str:
        self._require_auth()
        if self._folder_id:
            return self._folder_id

        try:
            existing = self._call(lambda drive: find_folder_by_name(drive, self.folder_name))
            if existing:
                folder_id = existing["id"]
            else:
                folder_id = self._call(lambda drive: create_folder(drive, self.folder_name))
                logger.info('Created backup folder "%s" (folderId=%s)', self.folder_name, folder_id)
        except HttpError as e:
            logger.error("Error creating backup folder: %s", e)
            raise ContainerCreationFailed() from e

        self._folder_id = folder_id
        return folder_id

    # -----------------------------------------------------------------------
    # Backups
    # -----------------------------------------------------------------------

    def list_backups(self) -> List[RemoteBackupEntry]:
        """
        Backups in the folder, newest first. Any failure after the sign-in
        check gives an empty list.
        """
        self._require_auth()
        try:
            folder_id = self.find_or_create_backup_folder()
            files = self._call(
                lambda drive: list_files_in_folder(drive, folder_id, name_contains=BACKUP_NAME_PREFIX)
            )
            return [RemoteBackupEntry.from_drive_file(f) for f in files]
        except Exception as e:
            logger.error("Error listing backups from Google Drive: %s", e)
            return []

    def upload_backup(self, payload: Union[bytes, str], file_name: str) -> str:
        """
        Upload `payload` as `file_name`. A backup with the same name is
        overwritten in place, so one name never maps to two files.
        """
        self._require_auth()
        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        with self._upload_lock(file_name):
            folder_id = self.find_or_create_backup_folder()
            existing = next((b for b in self.list_backups() if b.name == file_name), None)
            description = f"Daily Takings backup created on {datetime.now(timezone.utc).isoformat()}"

            try:
                if existing:
                    file_id = self._call(
                        lambda drive: update_file_content(
                            drive, existing.id, BACKUP_MIMETYPE, payload, description
                        )
                    )
                else:
                    file_id = self._call(
                        lambda drive: upload_file_to_folder(
                            drive, folder_id, file_name, BACKUP_MIMETYPE, payload, description
                        )
                    )
            except HttpError as e:
                logger.error("Error uploading backup %s: %s", file_name, e)
                raise UploadFailed(status=http_status(e)) from e

        logger.info(
            'Uploaded backup "%s" as fileId=%s (%s)',
            file_name,
            file_id,
            "updated" if existing else "created",
        )
        return file_id

    def download_backup(self, file_id: str) -> bytes:
        self._require_auth()
        try:
            return self._call(lambda drive: download_file(drive, file_id))
        except HttpError as e:
            logger.error("Error downloading backup %s: %s", file_id, e)
            raise DownloadFailed(status=http_status(e)) from e

    def delete_backup(self, file_id: str) -> bool:
        self._require_auth()
        try:
            self._call(lambda drive: delete_file(drive, file_id))
        except HttpError as e:
            logger.error("Error deleting backup %s: %s", file_id, e)
            return False
        logger.info("Deleted backup fileId=%s", file_id)
        return True

    def get_backup_info(self, file_id: str) -> Optional[RemoteBackupEntry]:
        self._require_auth()
        try:
            return RemoteBackupEntry.from_drive_file(self._call(lambda drive: get_file(drive, file_id)))
        except HttpError as e:
            logger.warning("Error getting backup info for %s: %s", file_id, e)
            return None
