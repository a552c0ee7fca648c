# google_client.py
import logging
import webbrowser
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from domain.errors import AuthFailed, AuthFailureReason

logger = logging.getLogger(__name__)

# App-created files only: the app never sees the rest of the user's Drive.
SCOPES = ["https://www.googleapis.com/auth/drive.file"]

REVOKE_URL = "https://oauth2.googleapis.com/revoke"

# The local callback server must outlive the caller's bounded wait, so the
# caller is the one that reports the timeout.
LOCAL_SERVER_GRACE_SECONDS = 5


class TokenStore:
    """
    Keeps the authorized-user token on disk between app restarts.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Credentials]:
        if not self.path.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self.path), SCOPES)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, e)
            return None

    def save(self, creds: Credentials) -> None:
        try:
            self.path.write_text(creds.to_json(), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save token file %s: %s", self.path, e)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove token file %s: %s", self.path, e)


def refresh_if_needed(creds: Optional[Credentials]) -> Optional[Credentials]:
    """
    Return usable credentials, refreshing an expired token when a refresh
    token is available. None means the user has to go through consent again.
    """
    if creds is None:
        return None
    if creds.valid:
        return creds
    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            logger.info("Stored token could not be refreshed: %s", e)
            return None
        return creds
    return None


def run_consent_flow(
    client_config: Optional[Dict[str, Any]] = None,
    client_secrets_file: Optional[str] = None,
    timeout_seconds: float = 30,
    open_browser: bool = True,
) -> Credentials:
    """
    Open the Google consent page in a browser and wait for the redirect on a
    local port. Raises AuthFailed for configuration problems and when no
    browser can be opened; other flow errors propagate to the caller.
    """
    try:
        if client_secrets_file:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets_file, SCOPES)
        elif client_config:
            flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
        else:
            raise AuthFailed(
                AuthFailureReason.CONFIGURATION_INVALID,
                "Google Drive API credentials are not configured",
            )
    except (OSError, ValueError) as e:
        raise AuthFailed(
            AuthFailureReason.CONFIGURATION_INVALID,
            f"Google OAuth client configuration is invalid: {e}",
        ) from e

    try:
        return flow.run_local_server(
            port=0,
            open_browser=open_browser,
            timeout_seconds=int(timeout_seconds) + LOCAL_SERVER_GRACE_SECONDS,
        )
    except webbrowser.Error as e:
        raise AuthFailed(
            AuthFailureReason.BLOCKED,
            "Could not open a browser for Google sign-in",
        ) from e


def build_drive_service(creds: Credentials) -> Resource:
    return build("drive", "v3", credentials=creds, cache_discovery=False)


def revoke_token(creds: Optional[Credentials], timeout_seconds: int = 10) -> bool:
    """
    Ask Google to revoke the token. Best effort: the local session is
    dropped either way.
    """
    if creds is None:
        return False
    token = creds.refresh_token or creds.token
    if not token:
        return False
    try:
        resp = requests.post(
            REVOKE_URL,
            params={"token": token},
            headers={"content-type": "application/x-www-form-urlencoded"},
            timeout=timeout_seconds,
        )
    except requests.RequestException as e:
        logger.warning("Token revoke request failed: %s", e)
        return False
    if resp.status_code != 200:
        logger.warning("Token revoke returned HTTP %d", resp.status_code)
        return False
    return True
