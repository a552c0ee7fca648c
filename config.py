# config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from domain.errors import ConfigError

DEFAULT_DATA_DIR = "data/sales"
DEFAULT_TOKEN_FILE = "token_drive.json"
DEFAULT_BACKUP_FOLDER = "Daily Takings Backups"
DEFAULT_AUTH_TIMEOUT = 30.0

# Checked in order; the first one that is set wins.
CLIENT_ID_VARS = ("GOOGLE_CLIENT_ID", "PUBLIC_GOOGLE_CLIENT_ID", "VITE_GOOGLE_CLIENT_ID")
CLIENT_SECRET_VARS = ("GOOGLE_CLIENT_SECRET", "PUBLIC_GOOGLE_CLIENT_SECRET", "VITE_GOOGLE_CLIENT_SECRET")


def _first_env(names) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return None


@dataclass
class Settings:
    data_dir: Path
    token_file: Path
    backup_folder_name: str = DEFAULT_BACKUP_FOLDER
    auth_timeout_seconds: float = DEFAULT_AUTH_TIMEOUT
    client_secrets_file: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def drive_configured(self) -> bool:
        return bool(self.client_secrets_file) or bool(self.client_id and self.client_secret)

    def google_client_config(self) -> Optional[Dict[str, Any]]:
        """
        OAuth "installed app" client config built from id/secret, in the
        same shape as a downloaded client_secret.json.
        """
        if not (self.client_id and self.client_secret):
            return None
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": ["http://localhost"],
            }
        }


def load_settings() -> Settings:
    load_dotenv()

    raw_timeout = os.getenv("GOOGLE_AUTH_TIMEOUT")
    timeout = DEFAULT_AUTH_TIMEOUT
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"GOOGLE_AUTH_TIMEOUT must be a number, got {raw_timeout!r}")
        if timeout <= 0:
            raise ConfigError("GOOGLE_AUTH_TIMEOUT must be positive")

    return Settings(
        data_dir=Path(os.getenv("DAILY_TAKINGS_DATA_DIR") or DEFAULT_DATA_DIR),
        token_file=Path(os.getenv("GOOGLE_TOKEN_FILE") or DEFAULT_TOKEN_FILE),
        backup_folder_name=os.getenv("BACKUP_FOLDER_NAME") or DEFAULT_BACKUP_FOLDER,
        auth_timeout_seconds=timeout,
        client_secrets_file=os.getenv("GOOGLE_CREDENTIALS_JSON") or None,
        client_id=_first_env(CLIENT_ID_VARS),
        client_secret=_first_env(CLIENT_SECRET_VARS),
    )
