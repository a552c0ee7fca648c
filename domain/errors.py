# domain/errors.py

from enum import Enum
from typing import Optional


class DailyTakingsError(Exception):
    """
    Base class for every error the app raises on purpose.
    """


class ConfigError(DailyTakingsError):
    """
    Raised when environment configuration is missing or malformed.
    """


class InvalidRecordName(DailyTakingsError, ValueError):
    """
    Raised when a record name is not of the form sales_<YYYY-MM-DD>.json
    or tries to escape the data directory.
    """


# ---------------------------------------------------------------------------
# Backup / restore
# ---------------------------------------------------------------------------

class BackupError(DailyTakingsError):
    pass


class NotAuthenticated(BackupError):
    def __init__(self, message: str = "Not authenticated with Google Drive"):
        super().__init__(message)


class NotConnected(BackupError):
    def __init__(self, message: str = "Not connected to Google Drive"):
        super().__init__(message)


class AuthFailureReason(str, Enum):
    BLOCKED = "blocked"
    TIMEOUT = "timeout"
    CONSENT_DENIED = "consent_denied"
    CONFIGURATION_INVALID = "configuration_invalid"


class AuthFailed(BackupError):
    """
    Sign-in did not complete. `reason` tells the UI what to suggest
    (allow a browser, retry, check credentials).
    """

    def __init__(self, reason: AuthFailureReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or f"Google Drive sign-in failed ({reason.value})")


class ContainerCreationFailed(BackupError):
    def __init__(self, message: str = "Failed to create backup folder in Google Drive"):
        super().__init__(message)


class _TransportError(BackupError):
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        if status is not None:
            message = f"{message} (HTTP {status})"
        super().__init__(message)


class UploadFailed(_TransportError):
    def __init__(self, status: Optional[int] = None, message: str = "Failed to upload backup to Google Drive"):
        super().__init__(message, status)


class DownloadFailed(_TransportError):
    def __init__(self, status: Optional[int] = None, message: str = "Failed to download backup from Google Drive"):
        super().__init__(message, status)


class MalformedPayload(BackupError):
    def __init__(self, message: str = "Invalid JSON format or corrupted file"):
        super().__init__(message)


class InvalidBackupFormat(BackupError):
    def __init__(self, message: str = "Invalid backup file format"):
        super().__init__(message)
