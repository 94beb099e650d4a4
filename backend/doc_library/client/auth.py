"""Client side of the external identity service."""
import asyncio
import logging
from typing import Optional

import aiohttp

from doc_library.client.token_store import TokenStore

logger = logging.getLogger(__name__)


class AuthClient:
    """Verifies the held token against the identity service."""

    def __init__(self, auth_api_url: str, token_store: TokenStore, timeout: float = 10):
        self.auth_api_url = auth_api_url.rstrip("/")
        self.token_store = token_store
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def verify_token(self) -> Optional[dict]:
        """Verification payload from the identity service, or None."""
        token = self.token_store.get()
        if not token:
            logger.debug("No stored token to verify")
            return None

        headers = {"Authorization": f"Bearer {token}", "x-access-token": token}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    f"{self.auth_api_url}/verify", json={"token": token}, headers=headers,
                ) as resp:
                    if resp.status >= 400:
                        logger.warning("Token verification rejected: HTTP %s", resp.status)
                        return None
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Error verifying token: %s", e)
            return None
        return data if isinstance(data, dict) else None

    async def check(self) -> Optional[dict]:
        """Verify the held token, dropping it unless the identity service accepts it."""
        if not self.token_store.get():
            return None
        data = await self.verify_token()
        if not data or not data.get("isValid"):
            self.token_store.remove()
            return None
        return data
