"""Client configuration from DOC_LIBRARY_* environment variables."""
from pathlib import Path

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    API_URL: str = "http://localhost:3001/api"
    AUTH_API_URL: str = "http://localhost:4000/api/auth"
    MAIN_APP_ORIGIN: str = "http://localhost:5173"
    TOKEN_FILE: Path = Path.home() / ".doc_library" / "token.json"
    RELAY_INTERVAL: float = 10.0
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024
    REQUEST_TIMEOUT: float = 60.0

    class Config:
        env_prefix = "DOC_LIBRARY_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


client_settings = ClientSettings()
