"""
Document Library CLI - Typer entry point

Commands: status, list, show, upload, download, delete, token set/show/clear/verify/sync, relay
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer

from doc_library.client.api import DocumentApiError, DocumentsClient
from doc_library.client.auth import AuthClient
from doc_library.client.config import client_settings
from doc_library.client.token_relay import TokenRelay
from doc_library.client.token_store import TokenStore
from doc_library.client.views import (
    CATEGORIES,
    AuthStatus,
    LibraryView,
    UploadForm,
    format_date,
    format_file_size,
)

app = typer.Typer()
token_app = typer.Typer()
app.add_typer(token_app, name="token")


def get_token_store() -> TokenStore:
    return TokenStore(client_settings.TOKEN_FILE)


def get_client(store: TokenStore) -> DocumentsClient:
    return DocumentsClient(client_settings.API_URL, store, timeout=client_settings.REQUEST_TIMEOUT)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    sys.exit(1)


@app.command()
def status() -> None:
    """Show who is signed in."""
    typer.echo(AuthStatus(get_token_store()).render())


@app.command("list")
def list_documents(
    mine: bool = typer.Option(False, "--mine", "-m", help="Only my documents"),
) -> None:
    """List documents, newest first."""
    store = get_token_store()
    view = LibraryView(client=get_client(store), token_store=store, mine_only=mine)
    asyncio.run(view.refresh())

    if view.error:
        _fail(view.error)
    if not view.documents:
        typer.echo(view.empty_message)
        return

    for doc in view.documents:
        owner = doc.user_name or "Anonymous User"
        category = CATEGORIES.get(doc.category, doc.category or "General")
        marker = "*" if view.can_delete(doc) else " "
        typer.echo(
            f"{marker} {doc.id:>5}  {doc.title}  [{category}]  {owner}  "
            f"{format_file_size(doc.filesize)}  {format_date(doc.uploaded_at)}"
        )


@app.command()
def show(document_id: int) -> None:
    """Show one document's metadata as JSON."""
    store = get_token_store()
    try:
        doc = asyncio.run(get_client(store).get_document(document_id))
    except DocumentApiError as e:
        _fail(e.message)
    typer.echo(json.dumps({
        "id": doc.id,
        "title": doc.title,
        "description": doc.description,
        "category": doc.category,
        "filename": doc.filename,
        "filesize": doc.filesize,
        "user_id": doc.user_id,
        "user_name": doc.user_name,
        "uploadedAt": doc.uploaded_at.isoformat() if doc.uploaded_at else None,
        "viewUrl": doc.view_url,
        "downloadUrl": doc.download_url,
    }, ensure_ascii=False, indent=2))


@app.command()
def upload(
    file: Path,
    title: str = typer.Option(..., "--title", "-t"),
    description: str = typer.Option("", "--description", "-d"),
    category: str = typer.Option("general", "--category", "-c"),
) -> None:
    """Upload a PDF."""
    store = get_token_store()
    form = UploadForm(
        client=get_client(store),
        title=title,
        description=description,
        category=category,
    )
    if not file.is_file():
        _fail(f"No such file: {file}")
    if not form.select_file(file):
        _fail(form.error)

    document_id = asyncio.run(form.submit())
    if document_id is None:
        _fail(form.error)
    typer.echo(document_id)


@app.command()
def download(
    document_id: int,
    dest: Path = typer.Option(Path("."), "--dest", "-o"),
) -> None:
    """Download a document's PDF."""
    store = get_token_store()
    try:
        path = asyncio.run(get_client(store).download_document(document_id, dest))
    except DocumentApiError as e:
        _fail(e.message)
    typer.echo(str(path))


@app.command()
def delete(
    document_id: int,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete one of my documents."""
    if not yes:
        typer.confirm("Are you sure you want to delete this document?", abort=True)
    store = get_token_store()
    view = LibraryView(client=get_client(store), token_store=store)
    if not asyncio.run(view.delete(document_id)):
        _fail(view.error)
    typer.echo("Document deleted")


@token_app.command("set")
def token_set(token: str) -> None:
    """Store a token by hand."""
    get_token_store().set(token.strip())
    typer.echo("Token saved")


@token_app.command("show")
def token_show() -> None:
    """Print the held token's decoded (unverified) claims."""
    claims = get_token_store().claims()
    if claims is None:
        _fail("No valid token stored")
    typer.echo(json.dumps(claims, ensure_ascii=False, indent=2, default=str))


@token_app.command("clear")
def token_clear() -> None:
    """Forget the held token."""
    get_token_store().remove()
    typer.echo("Token removed")


@token_app.command("verify")
def token_verify() -> None:
    """Check the held token with the identity service; drop it if rejected."""
    store = get_token_store()
    result = asyncio.run(AuthClient(client_settings.AUTH_API_URL, store).check())
    if result is None:
        _fail("Token is missing or invalid")
    typer.echo(json.dumps(result, ensure_ascii=False, indent=2, default=str))


@token_app.command("sync")
def token_sync() -> None:
    """Pull the main application's token once."""
    store = get_token_store()
    relay = TokenRelay(store, get_client(store), client_settings.MAIN_APP_ORIGIN)
    changed = asyncio.run(relay.sync_once())
    typer.echo("Token synchronized" if changed else f"No new token ({relay.status})")


@app.command()
def relay(
    duration: Optional[float] = typer.Option(None, "--duration", help="Seconds to run; forever if omitted"),
) -> None:
    """Keep the held token in sync with the main application."""
    store = get_token_store()
    token_relay = TokenRelay(
        store, get_client(store), client_settings.MAIN_APP_ORIGIN,
        interval=client_settings.RELAY_INTERVAL,
        on_change=lambda _: typer.echo("Token synchronized"),
    )

    async def _run():
        token_relay.start()
        try:
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        finally:
            await token_relay.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    app()
