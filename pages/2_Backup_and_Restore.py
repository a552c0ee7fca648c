import pandas as pd
import streamlit as st

from domain.errors import AuthFailed, BackupError
from element_component import (
    auth_error_message,
    confirmation_dialog,
    get_settings,
    get_sync_service,
    show_action_status,
)
from services.backup_codec import backup_file_name
from utils.formatting import format_file_size, format_restore_summary

st.set_page_config(page_title="Backup & Restore", page_icon="💾")
st.title("💾 Backup & Restore")

sync = get_sync_service()
show_action_status("restore_state")
show_action_status("drive_delete_state")

# -----------------------------------------------------------------------------
# Local backup
# -----------------------------------------------------------------------------
st.subheader("Local backup")

st.download_button(
    "💾 Download backup",
    data=sync.create_local_backup(),
    file_name=backup_file_name(),
    mime="application/json",
)

uploaded = st.file_uploader("Restore from a backup file", type=["json"])
if uploaded is not None:
    raw = uploaded.getvalue()
    check = sync.validate_candidate(raw)

    if not check.valid:
        st.error("Invalid backup file:\n\n" + "\n".join(f"- {e}" for e in check.errors))
    elif st.button("📤 Restore this backup"):

        def _restore_file():
            try:
                result = sync.restore_from_bytes(raw)
            except BackupError as e:
                return False, f"Failed to restore backup: {e}"
            return True, "Backup restore completed!\n\n" + format_restore_summary(result)

        confirmation_dialog(
            "Existing files with the same names will be overwritten.",
            {
                "Backup created": check.timestamp or "unknown date",
                "Files": str(check.file_count if check.file_count is not None else "unknown"),
            },
            _restore_file,
            "restore_state",
        )

st.divider()

# -----------------------------------------------------------------------------
# Google Drive
# -----------------------------------------------------------------------------
st.subheader("Google Drive")

if not get_settings().drive_configured:
    st.info(
        "Google Drive is not configured. Set GOOGLE_CREDENTIALS_JSON to an OAuth client "
        "secrets file, or GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET, in .env."
    )
    st.stop()

if not sync.is_connected:
    if st.button("Connect to Google Drive", type="primary"):
        with st.spinner("Waiting for Google sign-in..."):
            try:
                sync.connect()
            except AuthFailed as e:
                st.error(auth_error_message(e))
            else:
                st.rerun()
    st.stop()

col_sync, col_disconnect = st.columns(2)
with col_sync:
    if st.button("☁️ Sync backup to Drive", type="primary"):
        try:
            with st.spinner("Uploading backup..."):
                sync.sync_to_remote()
            st.success("Backup synced to Google Drive successfully!")
        except BackupError as e:
            st.error(f"Failed to sync backup: {e}")
with col_disconnect:
    if st.button("Disconnect"):
        sync.disconnect()
        st.rerun()

try:
    backups = sync.list_remote_backups()
except BackupError as e:
    st.error(str(e))
    st.stop()

if not backups:
    st.caption("No backups in Google Drive yet.")
    st.stop()

df_backups = pd.DataFrame(
    [
        {"Name": b.name, "Modified": b.modified_time or "-", "Size": format_file_size(b.size_bytes)}
        for b in backups
    ]
)
st.dataframe(df_backups, width="stretch", hide_index=True)

selected = st.selectbox("Backup", options=backups, format_func=lambda b: b.name)

col_restore, col_delete = st.columns(2)
with col_restore:
    if st.button("📥 Restore from Drive"):

        def _restore_remote():
            try:
                result = sync.restore_from_remote(selected.id)
            except BackupError as e:
                return False, f"Failed to restore backup: {e}"
            return True, "Backup restored successfully!\n\n" + format_restore_summary(result)

        confirmation_dialog(
            f'Restore backup from "{selected.name}"? This will overwrite existing files with the same names.',
            None,
            _restore_remote,
            "restore_state",
        )
with col_delete:
    if st.button("🗑️ Delete from Drive"):

        def _delete_remote():
            if sync.delete_remote_backup(selected.id):
                return True, f"Deleted {selected.name} from Google Drive"
            return False, f"Failed to delete {selected.name}"

        confirmation_dialog(
            f'Delete backup "{selected.name}" from Google Drive? This action cannot be undone.',
            None,
            _delete_remote,
            "drive_delete_state",
        )
