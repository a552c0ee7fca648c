from __future__ import annotations

import re
from types import SimpleNamespace
from typing import Any, Callable

import httplib2
import pytest
from googleapiclient.errors import HttpError

from domain.models import ProductLine, SalesRecord, SalesTotals
from services.backup_client import DriveBackupClient
from services.record_store import RecordStore

FOLDER_MIMETYPE = "application/vnd.google-apps.folder"


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b"{}")


def _unquote(value: str) -> str:
    return value.replace("\\'", "'").replace("\\\\", "\\")


class _FakeRequest:
    def __init__(self, drive: "FakeDrive", op: str, run: Callable[[], Any]):
        self._drive = drive
        self._op = op
        self._run = run

    def execute(self) -> Any:
        self._drive.executed.append(self._op)
        queued = self._drive.failures.get(self._op)
        if queued:
            raise http_error(queued.pop(0))
        return self._run()


class _FakeFiles:
    def __init__(self, drive: "FakeDrive"):
        self._drive = drive

    def list(self, q: str = "", pageToken: str | None = None, **kwargs: Any) -> _FakeRequest:
        return _FakeRequest(self._drive, "list", lambda: self._drive._list(q, pageToken))

    def create(self, body: dict, media_body: Any = None, fields: str | None = None) -> _FakeRequest:
        return _FakeRequest(self._drive, "create", lambda: self._drive._create(body, media_body))

    def update(self, fileId: str, body: dict | None = None, media_body: Any = None, fields: str | None = None) -> _FakeRequest:
        return _FakeRequest(self._drive, "update", lambda: self._drive._update(fileId, body or {}, media_body))

    def get_media(self, fileId: str) -> _FakeRequest:
        return _FakeRequest(self._drive, "get_media", lambda: self._drive._file(fileId)["content"])

    def get(self, fileId: str, fields: str | None = None) -> _FakeRequest:
        return _FakeRequest(self._drive, "get", lambda: self._drive._metadata(self._drive._file(fileId)))

    def delete(self, fileId: str) -> _FakeRequest:
        return _FakeRequest(self._drive, "delete", lambda: self._drive._delete(fileId))


class FakeDrive:
    """
    In-memory stand-in for a Drive v3 `Resource`. Understands the handful
    of query clauses the app sends and records every call.
    """

    def __init__(self, page_size: int | None = None):
        self.table: dict[str, dict] = {}
        self.calls: list[str] = []
        self.executed: list[str] = []
        self.failures: dict[str, list[int]] = {}
        self.page_size = page_size
        self._counter = 0

    def fail(self, op: str, status: int, times: int = 1) -> None:
        self.failures.setdefault(op, []).extend([status] * times)

    def files(self) -> _FakeFiles:
        self.calls.append("files")
        return _FakeFiles(self)

    # -- helpers used by tests -------------------------------------------

    def add_file(self, name: str, parent: str | None = None, content: bytes = b"", trashed: bool = False,
                 mime_type: str = "application/json") -> str:
        file_id = self._new_id()
        self.table[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": mime_type,
            "parents": [parent] if parent else [],
            "content": content,
            "trashed": trashed,
            "modifiedTime": self._tick(),
        }
        return file_id

    def files_named(self, name: str) -> list[dict]:
        return [f for f in self.table.values() if f["name"] == name and not f["trashed"]]

    # -- internals --------------------------------------------------------

    def _new_id(self) -> str:
        self._counter += 1
        return f"file-{self._counter}"

    def _tick(self) -> str:
        self._counter += 1
        return f"2025-01-15T10:{self._counter // 60:02d}:{self._counter % 60:02d}.000Z"

    def _file(self, file_id: str) -> dict:
        if file_id not in self.table:
            raise http_error(404)
        return self.table[file_id]

    @staticmethod
    def _metadata(f: dict) -> dict:
        meta = {"id": f["id"], "name": f["name"], "modifiedTime": f["modifiedTime"]}
        if f["mimeType"] != FOLDER_MIMETYPE:
            meta["size"] = str(len(f["content"]))
        return meta

    def _list(self, q: str, page_token: str | None) -> dict:
        files = list(self.table.values())
        if "trashed = false" in q:
            files = [f for f in files if not f["trashed"]]
        if m := re.search(r"name = '((?:[^'\\]|\\.)*)'", q):
            files = [f for f in files if f["name"] == _unquote(m.group(1))]
        if m := re.search(r"mimeType = '([^']*)'", q):
            files = [f for f in files if f["mimeType"] == m.group(1)]
        if m := re.search(r"'((?:[^'\\]|\\.)*)' in parents", q):
            files = [f for f in files if _unquote(m.group(1)) in f["parents"]]
        if m := re.search(r"name contains '((?:[^'\\]|\\.)*)'", q):
            files = [f for f in files if _unquote(m.group(1)) in f["name"]]
        files.sort(key=lambda f: f["modifiedTime"], reverse=True)

        start = int(page_token or 0)
        end = start + self.page_size if self.page_size else len(files)
        resp = {"files": [self._metadata(f) for f in files[start:end]]}
        if end < len(files):
            resp["nextPageToken"] = str(end)
        return resp

    def _create(self, body: dict, media_body: Any) -> dict:
        content = media_body.getbytes(0, media_body.size()) if media_body is not None else b""
        file_id = self.add_file(
            body["name"],
            parent=(body.get("parents") or [None])[0],
            content=content,
            mime_type=body.get("mimeType", "application/json"),
        )
        self.table[file_id]["description"] = body.get("description")
        return {"id": file_id}

    def _update(self, file_id: str, body: dict, media_body: Any) -> dict:
        f = self._file(file_id)
        if media_body is not None:
            f["content"] = media_body.getbytes(0, media_body.size())
        f.update(body)
        f["modifiedTime"] = self._tick()
        return {"id": file_id}

    def _delete(self, file_id: str) -> str:
        self._file(file_id)
        del self.table[file_id]
        return ""


class FakeTokenStore:
    def __init__(self, creds: Any = None):
        self.creds = creds
        self.saved: list[Any] = []
        self.cleared = 0

    def load(self) -> Any:
        return self.creds

    def save(self, creds: Any) -> None:
        self.saved.append(creds)

    def clear(self) -> None:
        self.cleared += 1
        self.creds = None


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def authorizer() -> Callable[[], Any]:
    def _authorize() -> Any:
        _authorize.calls += 1
        return SimpleNamespace(valid=True, token="access-token", refresh_token=None)

    _authorize.calls = 0
    return _authorize


@pytest.fixture
def revoked() -> list[Any]:
    return []


@pytest.fixture
def client(drive: FakeDrive, authorizer: Callable[[], Any], revoked: list[Any]) -> DriveBackupClient:
    """A client wired to the fake Drive, not yet signed in."""
    return DriveBackupClient(
        authorizer=authorizer,
        service_factory=lambda creds: drive,
        auth_timeout_seconds=2,
        revoke=lambda creds: revoked.append(creds) or True,
    )


@pytest.fixture
def signed_in(client: DriveBackupClient) -> DriveBackupClient:
    client.authenticate()
    return client


@pytest.fixture
def store(tmp_path) -> RecordStore:
    return RecordStore(tmp_path / "sales")


def make_record(sales_date: str = "2025-01-15", **totals: float) -> SalesRecord:
    cash = totals.get("cash", 20)
    card = totals.get("card", 20)
    digital = totals.get("digital", 10)
    return SalesRecord(
        date=sales_date,
        products=[ProductLine(product_id=1, quantity=5, cash=2, card=2, digital=1)],
        totals=SalesTotals.from_parts(cash, card, digital),
    )
