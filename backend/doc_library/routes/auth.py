"""Auth token relay route.

Lets a client that was opened separately from the main application fetch
the main application's current token through this server.
"""
import asyncio
import logging

import aiohttp
from fastapi import APIRouter

from doc_library.config import settings
from doc_library.errors import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

TOKEN_FETCH_TIMEOUT = aiohttp.ClientTimeout(total=10)


async def fetch_main_app_token(url: str) -> dict:
    """GET the main application's token endpoint and return its JSON body."""
    async with aiohttp.ClientSession(timeout=TOKEN_FETCH_TIMEOUT) as session:
        async with session.get(url, headers={"Content-Type": "application/json"}) as resp:
            if resp.status >= 400:
                raise UpstreamError(f"Error fetching token: {resp.status}")
            return await resp.json(content_type=None)


@router.get("/token")
async def get_main_app_token():
    """Proxy the main application's token endpoint."""
    try:
        return await fetch_main_app_token(settings.MAIN_APP_TOKEN_URL)
    except (UpstreamError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.error("Error fetching token from main app: %s", e)
        raise UpstreamError("Error fetching token") from e
