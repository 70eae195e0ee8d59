# tests/conftest.py
import itertools
import posixpath

import pytest

from sharepoint_fs import Filesystem, SharePointAdapter
from sharepoint_fs.config import Config
from sharepoint_fs.exceptions import FileNotFound, RemoteRequestFailure

SITE_URL = "https://contoso.sharepoint.com/sites/Team"
MODIFIED = "2024-05-01T10:00:00Z"
MODIFIED_EPOCH = 1714557600

MIMETYPES = {".txt": "text/plain", ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document"}


class FakeDriveClient:
    """
    In-memory stand-in for GraphDriveClient.

    Behaves like a Graph document library: uploads by path create missing
    folders, children come back in creation order, folders carry a 'folder'
    facet and upload sessions only create the file once committed.
    """

    def __init__(self):
        self.nodes = {"": {"type": "folder", "id": "root"}}
        self.sessions = {}
        self.ids = itertools.count(1)
        self.chunk_calls = []
        self.cancelled = []
        self.committed = []
        self.small_uploads = []
        self.reject_uploads = False
        self.fail_chunk_at = None

    # -- helpers -------------------------------------------------------

    def _item(self, path):
        node = self.nodes[path]
        item = {
            "id": node["id"],
            "name": posixpath.basename(path) or "root",
            "webUrl": f"{SITE_URL}/Shared%20Documents/{path}",
            "lastModifiedDateTime": MODIFIED,
        }
        if node["type"] == "folder":
            item["folder"] = {"childCount": len(self._children(path))}
            item["size"] = sum(len(n.get("content", b"")) for p, n in self.nodes.items()
                               if p.startswith(path + "/"))
        else:
            item["size"] = len(node["content"])
            mimetype = MIMETYPES.get(posixpath.splitext(path)[1])
            item["file"] = {"mimeType": mimetype} if mimetype else {}
        return item

    def _children(self, path):
        return [p for p in self.nodes if p and posixpath.dirname(p) == path]

    def _ensure_parents(self, path):
        parent = posixpath.dirname(path)
        if parent in self.nodes:
            if self.nodes[parent]["type"] != "folder":
                raise RemoteRequestFailure("Failed to upload: 409 - parent is a file", status_code=409)
            return
        self._ensure_parents(parent)
        self.nodes[parent] = {"type": "folder", "id": f"item-{next(self.ids)}"}

    def _store(self, path, content):
        self._ensure_parents(path)
        existing = self.nodes.get(path)
        if existing and existing["type"] == "folder":
            raise RemoteRequestFailure("Failed to upload: 409 - folder exists", status_code=409)
        node_id = existing["id"] if existing else f"item-{next(self.ids)}"
        self.nodes[path] = {"type": "file", "id": node_id, "content": bytes(content)}
        return self._item(path)

    # -- GraphDriveClient interface -----------------------------------

    def get_item(self, path):
        if path not in self.nodes:
            raise FileNotFound(path)
        return self._item(path)

    def list_children(self, path):
        if path not in self.nodes:
            raise FileNotFound(path)
        return [self._item(p) for p in self._children(path)]

    def download(self, path):
        node = self.nodes.get(path)
        if node is None:
            raise FileNotFound(path)
        if node["type"] != "file":
            raise RemoteRequestFailure("Failed to download: 400 - not a file", status_code=400)
        return node["content"]

    def upload_small_file(self, path, content):
        if self.reject_uploads:
            raise RemoteRequestFailure("Failed to upload: 403 - accessDenied", status_code=403)
        self.small_uploads.append(path)
        return self._store(path, content)

    def create_upload_session(self, path):
        if self.reject_uploads:
            raise RemoteRequestFailure("Failed to create upload session: 403", status_code=403)
        url = f"https://upload.example/session/{next(self.ids)}"
        self.sessions[url] = {"path": path, "data": bytearray()}
        return {"uploadUrl": url, "expirationDateTime": "2099-01-01T00:00:00Z"}

    def upload_chunk(self, upload_url, chunk_data, chunk_start, total_size):
        session = self.sessions.get(upload_url)
        if session is None:
            raise RemoteRequestFailure("Chunk upload failed: 404 - session gone", status_code=404)
        self.chunk_calls.append((chunk_start, len(chunk_data), total_size))
        if self.fail_chunk_at is not None and len(self.chunk_calls) - 1 == self.fail_chunk_at:
            raise RemoteRequestFailure("Chunk upload failed: 500 - boom", status_code=500)
        if chunk_start != len(session["data"]):
            raise RemoteRequestFailure("Chunk upload failed: 416 - range not satisfiable", status_code=416)
        session["data"].extend(chunk_data)
        return {"nextExpectedRanges": [] if len(session["data"]) == total_size else [f"{len(session['data'])}-"]}

    def commit_upload_session(self, upload_url):
        session = self.sessions.pop(upload_url)
        self.committed.append(upload_url)
        return self._store(session["path"], session["data"])

    def cancel_upload_session(self, upload_url):
        self.sessions.pop(upload_url, None)
        self.cancelled.append(upload_url)
        return True

    def create_folder(self, parent_path, folder_name):
        if parent_path not in self.nodes:
            raise FileNotFound(parent_path)
        path = f"{parent_path}/{folder_name}" if parent_path else folder_name
        if path in self.nodes:
            raise RemoteRequestFailure("Failed to create folder: 409 - nameAlreadyExists", status_code=409)
        self.nodes[path] = {"type": "folder", "id": f"item-{next(self.ids)}"}
        return self._item(path)

    def delete_item(self, path):
        if path not in self.nodes:
            raise FileNotFound(path)
        for p in [p for p in self.nodes if p == path or p.startswith(path + "/")]:
            del self.nodes[p]
        return True

    def move_item(self, path, new_parent_path, new_name):
        if path not in self.nodes:
            raise FileNotFound(path)
        target = f"{new_parent_path}/{new_name}" if new_parent_path else new_name
        if target in self.nodes:
            raise RemoteRequestFailure("Failed to move: 409 - nameAlreadyExists", status_code=409)
        for p in [p for p in self.nodes if p == path or p.startswith(path + "/")]:
            self.nodes[target + p[len(path):]] = self.nodes.pop(p)
        return self._item(target)


@pytest.fixture(autouse=True)
def clean_debug_env(monkeypatch):
    """Keep DEBUG switches from the developer's shell out of the tests."""
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.delenv("DEBUG_METADATA", raising=False)


@pytest.fixture
def config():
    return Config(
        url=SITE_URL,
        client_id="client-id",
        client_secret="client-secret",
        tenant_id="tenant-id",
        root="tests",
        upload_threshold=500_000,
        chunk_size=327680,
    )


@pytest.fixture
def fake_drive():
    return FakeDriveClient()


@pytest.fixture
def adapter(config, fake_drive):
    return SharePointAdapter(config, client=fake_drive)


@pytest.fixture
def fs(adapter):
    return Filesystem(adapter)
