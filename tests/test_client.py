"""DocumentsClient / AuthClient against a stub HTTP server."""
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from conftest import make_token, pdf_bytes
from doc_library.client.api import DocumentApiError, DocumentsClient
from doc_library.client.auth import AuthClient
from doc_library.client.token_store import TokenStore

DOC = {
    "id": 7,
    "title": "Spec",
    "description": "",
    "category": "manual",
    "filename": "spec.pdf",
    "filepath": "uploads/abc.pdf",
    "filesize": 10240,
    "user_id": "u1",
    "user_name": "Alice",
    "uploadedAt": "2026-10-19T10:30:00.123456",
    "viewUrl": "/uploads/abc.pdf",
    "downloadUrl": "/api/documents/7/download",
}


@pytest.fixture
def store(tmp_path):
    return TokenStore(tmp_path / "token.json")


@pytest_asyncio.fixture
async def stub():
    """Stub Document API recording every request it sees."""
    seen = []

    async def list_documents(request):
        seen.append(request)
        return web.json_response([DOC])

    async def get_document(request):
        seen.append(request)
        if request.match_info["id"] != "7":
            return web.json_response({"message": "Document not found"}, status=404)
        return web.json_response(DOC)

    async def create_document(request):
        form = await request.post()
        upload = form.get("file")
        seen.append({
            "title": form.get("title"),
            "description": form.get("description"),
            "category": form.get("category"),
            "filename": getattr(upload, "filename", None),
            "content_type": getattr(upload, "content_type", None),
            "content": upload.file.read() if upload is not None else None,
        })
        if not form.get("title"):
            return web.json_response({"message": "Document title is required"}, status=400)
        return web.json_response({"id": 8, "message": "Document uploaded successfully"}, status=201)

    suggested_names = {"7": "spec.pdf", "9": "../escaped.pdf", "10": ".."}

    async def download_document(request):
        seen.append(request)
        name = suggested_names[request.match_info["id"]]
        return web.Response(
            body=pdf_bytes(2048),
            content_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{name}"'},
        )

    async def delete_document(request):
        seen.append(request)
        if request.match_info["id"] == "500":
            return web.Response(status=500, text="<html>boom</html>")
        if request.headers.get("x-access-token") is None:
            return web.json_response(
                {"message": "You do not have permission to delete this document"}, status=403,
            )
        return web.json_response({"message": "Document deleted successfully"})

    async def main_app_token(request):
        return web.json_response({"token": "relayed-token"})

    async def verify(request):
        body = await request.json()
        return web.json_response({"isValid": body["token"] == "good-token", "user": {"id": "u1"}})

    app = web.Application()
    app.router.add_get("/api/documents", list_documents)
    app.router.add_post("/api/documents", create_document)
    app.router.add_get("/api/documents/{id}", get_document)
    app.router.add_get("/api/documents/{id}/download", download_document)
    app.router.add_delete("/api/documents/{id}", delete_document)
    app.router.add_get("/api/auth/token", main_app_token)
    app.router.add_post("/auth/verify", verify)

    server = TestServer(app)
    await server.start_server()
    yield server, seen
    await server.close()


def _api(server, store):
    return DocumentsClient(str(server.make_url("/api")), store)


async def test_list_attaches_both_token_headers(stub, store):
    server, seen = stub
    token = make_token("u1", "Alice")
    store.set(token)

    docs = await _api(server, store).list_documents()

    assert len(docs) == 1
    assert docs[0].id == 7
    assert docs[0].filesize == 10240
    assert docs[0].user_id == "u1"
    assert docs[0].uploaded_at.year == 2026
    assert docs[0].download_url == "/api/documents/7/download"
    assert seen[0].headers["Authorization"] == f"Bearer {token}"
    assert seen[0].headers["x-access-token"] == token


async def test_no_token_no_auth_headers(stub, store):
    server, seen = stub
    await _api(server, store).list_documents(user_id="u1")
    assert "Authorization" not in seen[0].headers
    assert "x-access-token" not in seen[0].headers
    assert seen[0].query["userId"] == "u1"


async def test_token_read_at_call_time(stub, store):
    server, seen = stub
    async with _api(server, store) as api:
        store.set("first")
        await api.list_documents()
        store.set("second")
        await api.list_documents()
    assert [r.headers["x-access-token"] for r in seen] == ["first", "second"]


async def test_server_message_surfaces(stub, store):
    server, _ = stub
    with pytest.raises(DocumentApiError) as exc:
        await _api(server, store).get_document(99)
    assert exc.value.status == 404
    assert exc.value.message == "Document not found"


async def test_fallback_message_without_json_body(stub, store):
    server, _ = stub
    store.set("t")
    with pytest.raises(DocumentApiError) as exc:
        await _api(server, store).delete_document(500)
    assert exc.value.status == 500
    assert exc.value.message == "Error deleting document"


async def test_permission_error(stub, store):
    server, _ = stub
    with pytest.raises(DocumentApiError) as exc:
        await _api(server, store).delete_document(7)
    assert exc.value.status == 403
    assert "permission" in exc.value.message


async def test_delete(stub, store):
    server, _ = stub
    store.set("t")
    assert await _api(server, store).delete_document(7) == "Document deleted successfully"


async def test_upload_sends_multipart(stub, store, tmp_path):
    server, seen = stub
    pdf = tmp_path / "spec.pdf"
    pdf.write_bytes(pdf_bytes(1024))

    result = await _api(server, store).upload_document(pdf, "Spec", description="d", category="manual")

    assert result.id == 8
    assert seen[0] == {
        "title": "Spec",
        "description": "d",
        "category": "manual",
        "filename": "spec.pdf",
        "content_type": "application/pdf",
        "content": pdf_bytes(1024),
    }


async def test_upload_validation_error(stub, store, tmp_path):
    server, _ = stub
    pdf = tmp_path / "spec.pdf"
    pdf.write_bytes(pdf_bytes(100))
    with pytest.raises(DocumentApiError) as exc:
        await _api(server, store).upload_document(pdf, "")
    assert exc.value.status == 400
    assert exc.value.message == "Document title is required"


async def test_download_uses_suggested_name(stub, store, tmp_path):
    server, _ = stub
    path = await _api(server, store).download_document(7, tmp_path)
    assert path == tmp_path / "spec.pdf"
    assert path.read_bytes() == pdf_bytes(2048)


async def test_download_stays_inside_dest_dir(stub, store, tmp_path):
    server, _ = stub
    dest = tmp_path / "dest"
    dest.mkdir()

    path = await _api(server, store).download_document(9, dest)

    assert path == dest / "escaped.pdf"
    assert dest in path.resolve().parents
    assert not (tmp_path / "escaped.pdf").exists()


async def test_download_falls_back_when_suggested_name_unusable(stub, store, tmp_path):
    server, _ = stub
    path = await _api(server, store).download_document(10, tmp_path)
    assert path == tmp_path / "document-10.pdf"


async def test_download_explicit_name_is_reduced_to_basename(stub, store, tmp_path):
    server, _ = stub
    dest = tmp_path / "dest"
    dest.mkdir()
    path = await _api(server, store).download_document(7, dest, filename="../../mine.pdf")
    assert path == dest / "mine.pdf"


async def test_connection_failure(store):
    api = DocumentsClient("http://127.0.0.1:1/api", store, timeout=5)
    with pytest.raises(DocumentApiError) as exc:
        await api.list_documents()
    assert exc.value.status == 0
    assert exc.value.message == "Error fetching documents"


async def test_fetch_main_app_token(stub, store):
    server, _ = stub
    assert await _api(server, store).fetch_main_app_token() == "relayed-token"


class TestAuthClient:

    async def test_valid_token_kept(self, stub, store):
        server, _ = stub
        store.set("good-token")
        result = await AuthClient(str(server.make_url("/auth")), store).check()
        assert result["isValid"] is True
        assert store.get() == "good-token"

    async def test_invalid_token_removed(self, stub, store):
        server, _ = stub
        store.set("bad-token")
        assert await AuthClient(str(server.make_url("/auth")), store).check() is None
        assert store.get() is None

    async def test_no_token(self, stub, store):
        server, _ = stub
        assert await AuthClient(str(server.make_url("/auth")), store).verify_token() is None
