"""Locally held auth token, persisted to a small JSON file.

Every writer (manual entry, the relay, auth checks) goes through the same
file, so the last write wins. Readers pick up the current value on each call.
"""
import json
import logging
from pathlib import Path
from typing import Optional

import jwt

logger = logging.getLogger(__name__)


class TokenStore:

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Unreadable token file %s: %s", self.path, e)
            return None
        token = data.get("auth_token") if isinstance(data, dict) else None
        return token or None

    def set(self, token: str) -> None:
        if not token:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"auth_token": token}), encoding="utf-8")
        logger.info("Token saved to %s", self.path)

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.info("Token removed from %s", self.path)

    def is_authenticated(self) -> bool:
        return self.get() is not None

    def claims(self) -> Optional[dict]:
        """Payload of the held token, NOT verified.

        Only for display and for scoping "my documents"; the server does its
        own verification before trusting anything.
        """
        token = self.get()
        if not token:
            return None
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            logger.warning("Error decoding token: %s", e)
            return None

    def user_id(self) -> Optional[str]:
        claims = self.claims()
        if not claims:
            return None
        user_id = claims.get("id") or claims.get("sub")
        return str(user_id) if user_id is not None else None

    def user_name(self) -> Optional[str]:
        claims = self.claims()
        if not claims:
            return None
        return claims.get("username") or claims.get("name")
