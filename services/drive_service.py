# services/drive_service.py
import io
from typing import Dict, List, Optional

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

FOLDER_MIMETYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id, name, modifiedTime, size"


def _quote(value: str) -> str:
    # Drive query strings are single-quoted
    return value.replace("\\", "\\\\").replace("'", "\\'")


def http_status(err: HttpError) -> Optional[int]:
    resp = getattr(err, "resp", None)
    status = getattr(resp, "status", None)
    return int(status) if status is not None else None


def find_folder_by_name(drive: Resource, name: str) -> Optional[Dict]:
    query = (
        f"name = '{_quote(name)}' and "
        f"mimeType = '{FOLDER_MIMETYPE}' and "
        f"trashed = false"
    )

    resp = drive.files().list(
        q=query,
        spaces="drive",
        fields="files(id, name)",
        pageSize=1,
    ).execute()

    files: List[Dict] = resp.get("files", [])
    return files[0] if files else None


def create_folder(drive: Resource, name: str) -> str:
    folder = drive.files().create(
        body={"name": name, "mimeType": FOLDER_MIMETYPE},
        fields="id",
    ).execute()
    return folder["id"]


def list_files_in_folder(
    drive: Resource,
    folder_id: str,
    name_contains: Optional[str] = None,
    order_by: str = "modifiedTime desc",
) -> List[Dict]:
    """
    All non-trashed files directly inside `folder_id`, following pagination.
    """
    query = f"'{_quote(folder_id)}' in parents and trashed = false"
    if name_contains:
        query += f" and name contains '{_quote(name_contains)}'"

    files: List[Dict] = []
    page_token = None
    while True:
        resp = drive.files().list(
            q=query,
            orderBy=order_by,
            fields=f"nextPageToken, files({FILE_FIELDS})",
            pageToken=page_token,
        ).execute()
        files.extend(resp.get("files", []))
        page_token = resp.get("nextPageToken")
        if not page_token:
            return files


def upload_file_to_folder(
    drive: Resource,
    folder_id: str,
    filename: str,
    mimetype: str,
    content: bytes,
    description: Optional[str] = None,
) -> str:
    media = MediaIoBaseUpload(
        io.BytesIO(content),
        mimetype=mimetype,
        resumable=False,
    )

    metadata = {
        "name": filename,
        "parents": [folder_id],
    }
    if description:
        metadata["description"] = description

    file = drive.files().create(
        body=metadata,
        media_body=media,
        fields="id",
    ).execute()

    return file["id"]


def update_file_content(
    drive: Resource,
    file_id: str,
    mimetype: str,
    content: bytes,
    description: Optional[str] = None,
) -> str:
    """
    Replace the bytes of an existing file; the file id stays the same.
    """
    media = MediaIoBaseUpload(
        io.BytesIO(content),
        mimetype=mimetype,
        resumable=False,
    )

    metadata = {}
    if description:
        metadata["description"] = description

    file = drive.files().update(
        fileId=file_id,
        body=metadata,
        media_body=media,
        fields="id",
    ).execute()

    return file["id"]


def download_file(drive: Resource, file_id: str) -> bytes:
    return drive.files().get_media(fileId=file_id).execute()


def delete_file(drive: Resource, file_id: str) -> None:
    drive.files().delete(fileId=file_id).execute()


def get_file(drive: Resource, file_id: str) -> Dict:
    return drive.files().get(fileId=file_id, fields=FILE_FIELDS).execute()
