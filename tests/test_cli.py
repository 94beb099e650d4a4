"""
Document Library CLI tests

- status / token: local only, no server needed
- list / delete: against an in-memory client
- upload: pre-validation fails before any request
"""

import pytest
from typer.testing import CliRunner

from conftest import make_token
from doc_library.client import cli
from doc_library.client.api import DocumentApiError, DocumentInfo

runner = CliRunner()


class FakeClient:

    def __init__(self, documents):
        self.documents = documents
        self.deleted = []

    async def list_documents(self, user_id=None):
        return [d for d in self.documents if user_id is None or d.user_id == user_id]

    async def delete_document(self, document_id):
        if document_id == 404:
            raise DocumentApiError(404, "Document not found", "/x")
        self.deleted.append(document_id)
        return "Document deleted successfully"


@pytest.fixture(autouse=True)
def token_file(tmp_path, monkeypatch):
    path = tmp_path / "token.json"
    monkeypatch.setattr(cli.client_settings, "TOKEN_FILE", path)
    return path


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient([
        DocumentInfo(id=1, title="Mine", filename="a.pdf", filesize=2048, user_id="u1", user_name="Alice"),
        DocumentInfo(id=2, title="Theirs", filename="b.pdf", filesize=10, user_id="u2", user_name="Bob"),
    ])
    monkeypatch.setattr(cli, "get_client", lambda store: client)
    return client


def test_help() -> None:
    r = runner.invoke(cli.app, ["--help"])
    assert r.exit_code == 0
    for command in ("list", "upload", "download", "delete", "token", "status"):
        assert command in r.output


def test_token_roundtrip() -> None:
    r = runner.invoke(cli.app, ["status"])
    assert r.exit_code == 0
    assert "Not signed in" in r.output

    assert runner.invoke(cli.app, ["token", "set", make_token("u1", "Alice")]).exit_code == 0
    assert "Signed in as Alice" in runner.invoke(cli.app, ["status"]).output

    r = runner.invoke(cli.app, ["token", "show"])
    assert r.exit_code == 0
    assert '"id": "u1"' in r.output

    assert runner.invoke(cli.app, ["token", "clear"]).exit_code == 0
    assert runner.invoke(cli.app, ["token", "show"]).exit_code == 1


def test_list(fake_client) -> None:
    r = runner.invoke(cli.app, ["list"])
    assert r.exit_code == 0
    assert "Mine" in r.output
    assert "Theirs" in r.output
    assert "2.00 KB" in r.output


def test_list_mine(fake_client) -> None:
    runner.invoke(cli.app, ["token", "set", make_token("u1", "Alice")])
    r = runner.invoke(cli.app, ["list", "--mine"])
    assert r.exit_code == 0
    assert "Mine" in r.output
    assert "Theirs" not in r.output


def test_list_empty(monkeypatch) -> None:
    monkeypatch.setattr(cli, "get_client", lambda store: FakeClient([]))
    r = runner.invoke(cli.app, ["list"])
    assert r.exit_code == 0
    assert "No documents available." in r.output


def test_delete(fake_client) -> None:
    r = runner.invoke(cli.app, ["delete", "1", "--yes"])
    assert r.exit_code == 0
    assert fake_client.deleted == [1]

    r = runner.invoke(cli.app, ["delete", "404", "--yes"])
    assert r.exit_code == 1
    assert "Document not found" in r.output


def test_upload_rejects_non_pdf(tmp_path, fake_client) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    r = runner.invoke(cli.app, ["upload", str(notes), "--title", "Notes"])
    assert r.exit_code == 1
    assert "Only PDF files are allowed" in r.output
