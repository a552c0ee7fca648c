from functools import partial
from typing import Callable, Dict, Optional, Tuple

import pandas as pd
import streamlit as st

from config import Settings, load_settings
from domain.errors import AuthFailed, AuthFailureReason
from google_client import TokenStore, run_consent_flow
from services.backup_client import DriveBackupClient
from services.record_store import RecordStore
from services.sync_service import SyncService

AUTH_ERROR_MESSAGES = {
    AuthFailureReason.BLOCKED: "Could not open a browser window for Google sign-in. Allow pop-ups and try again.",
    AuthFailureReason.TIMEOUT: "Connection timed out. Please check your internet connection and try again.",
    AuthFailureReason.CONFIGURATION_INVALID: "Google Drive API credentials are not configured correctly.",
}


@st.cache_resource
def get_settings() -> Settings:
    return load_settings()


@st.cache_resource
def get_record_store() -> RecordStore:
    # shared by all sessions so per-record write locks are shared too
    return RecordStore(get_settings().data_dir)


def get_sync_service() -> SyncService:
    if "sync_service" not in st.session_state:
        settings = get_settings()
        remote = None
        if settings.drive_configured:
            remote = DriveBackupClient(
                authorizer=partial(
                    run_consent_flow,
                    client_config=settings.google_client_config(),
                    client_secrets_file=settings.client_secrets_file,
                    timeout_seconds=settings.auth_timeout_seconds,
                ),
                token_store=TokenStore(settings.token_file),
                folder_name=settings.backup_folder_name,
                auth_timeout_seconds=settings.auth_timeout_seconds,
            )
        st.session_state["sync_service"] = SyncService(get_record_store(), remote)
    return st.session_state["sync_service"]


def auth_error_message(err: AuthFailed) -> str:
    return AUTH_ERROR_MESSAGES.get(err.reason, str(err))


@st.dialog("Confirm")
def confirmation_dialog(
        message: str,
        details: Optional[Dict[str, str]],
        action: Callable[[], Tuple[bool, str]],
        state_name: str,
):
    """
    Ask before running `action`. Its (ok, message) result is kept in
    st.session_state[state_name] so the page can show it after the rerun.
    """
    st.write(message)
    if details:
        df = pd.DataFrame(details.items(), columns=["Key", "Value"])
        st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Yes", type="primary", key="confirm_yes"):
            ok, msg = action()
            st.session_state[state_name] = (ok, msg)

            if not ok:
                st.error(msg)
            else:
                st.rerun()
    with col_no:
        if st.button("No"):
            st.rerun()


def show_action_status(state_name: str) -> None:
    status = st.session_state.pop(state_name, None)
    if status is None:
        return
    ok, msg = status
    if ok:
        st.success(msg)
    else:
        st.error(msg)
