"""Best-effort token relay from the main application.

Two ways a token arrives:

* polling: on start and every ``interval`` seconds the relay asks the server
  for the main application's token (``GET /api/auth/token``);
* messages: ``handle_message`` accepts ``TOKEN_RESPONSE`` messages only from
  the main application's origin, and ``TOKEN_SYNC`` messages from any origin.

Whatever arrives overwrites the TokenStore; last write wins. There is no
delivery or ordering guarantee, and stopping the relay does not abort a
request already in flight.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from doc_library.client.api import DocumentApiError, DocumentsClient
from doc_library.client.token_store import TokenStore

logger = logging.getLogger(__name__)

TOKEN_SYNC = "TOKEN_SYNC"
TOKEN_RESPONSE = "TOKEN_RESPONSE"


class TokenRelay:

    def __init__(
        self,
        token_store: TokenStore,
        client: DocumentsClient,
        trusted_origin: str,
        interval: float = 10.0,
        on_change: Optional[Callable[[str], Any]] = None,
    ):
        self.token_store = token_store
        self.client = client
        self.trusted_origin = trusted_origin.rstrip("/")
        self.interval = interval
        self.on_change = on_change
        self.status = "idle"
        self._task: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()

    def handle_message(self, message: Any, origin: str) -> bool:
        """Store a token carried by `message`. Returns True when stored."""
        if not isinstance(message, dict):
            return False
        token = message.get("token")
        if not token or not isinstance(token, str):
            return False

        kind = message.get("type")
        if kind == TOKEN_RESPONSE:
            if origin.rstrip("/") != self.trusted_origin:
                logger.warning("Ignoring token response from untrusted origin %s", origin)
                return False
        elif kind != TOKEN_SYNC:
            return False

        self._store(token)
        return True

    async def sync_once(self) -> bool:
        """Pull the main application's token once. Returns True if it changed."""
        try:
            token = await self.client.fetch_main_app_token()
        except DocumentApiError as e:
            logger.debug("Token sync failed: %s", e)
            self.status = "error"
            return False
        if not token or token == self.token_store.get():
            return False
        self._store(token)
        return True

    async def run(self) -> None:
        """Sync now, then every `interval` seconds until stopped."""
        while not self._stopped.is_set():
            await self.sync_once()
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stopped.clear()
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop scheduling syncs. A sync already in flight runs to completion."""
        self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None

    def _store(self, token: str) -> None:
        self.token_store.set(token)
        self.status = "synced"
        logger.info("Token synchronized from the main application")
        if self.on_change is not None:
            self.on_change(token)
