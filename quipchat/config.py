from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.reply_backend: str = os.getenv("REPLY_BACKEND", "demo").strip().lower()
        self.gemini_api_key: Optional[str] = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        self.ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3.2:3b").strip()
        self.ollama_path: str = os.getenv("OLLAMA_PATH", "ollama")
        self.endpoint_url: str = os.getenv("QUIPCHAT_ENDPOINT", "http://127.0.0.1:8000/")
        self.history_dir: str = os.getenv("QUIPCHAT_HISTORY_DIR", "~/.quipchat")
        self.turn_timeout: Optional[float] = _optional_float(os.getenv("QUIPCHAT_TURN_TIMEOUT"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_dev(self) -> bool:
        return self.app_env.lower() in {"dev", "development", "local"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
