"""Configuration management for World Chat."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "World Chat Gateway"
DEFAULT_APP_VERSION = "1.0.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


class Settings(BaseModel):
    """Application settings with environment fallbacks."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default_factory=lambda: os.getenv("WORLDCHAT_HOST", "0.0.0.0"))
    server_port: int = Field(default_factory=lambda: _env_int("WORLDCHAT_PORT", 5000))

    # AI backend endpoints (externally owned)
    backend_chat_url: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_CHAT_URL"))
    backend_auth_url: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_AUTH_URL"))
    backend_settings_url: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_SETTINGS_URL"))
    backend_worlds_url: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_WORLDS_URL"))
    backend_history_url: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_HISTORY_URL"))
    backend_function_key: Optional[str] = Field(default_factory=lambda: os.getenv("AI_BACKEND_FUNCTION_KEY"))
    backend_timeout: float = Field(default_factory=lambda: _env_float("AI_BACKEND_TIMEOUT", 60.0))

    # Chat client behaviour
    gateway_base_url: str = Field(default_factory=lambda: os.getenv("WORLDCHAT_GATEWAY_URL", "http://localhost:5000"))
    history_window_size: int = Field(default=10)
    history_page_size: int = Field(default_factory=lambda: _env_int("WORLDCHAT_HISTORY_PAGE_SIZE", 20))
    world_reload_delay: float = Field(default_factory=lambda: _env_float("WORLDCHAT_WORLD_RELOAD_DELAY", 0.5))
    scroll_load_threshold: int = Field(default=200)  # px from the top

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default_factory=lambda: os.getenv("WORLDCHAT_CORS_ALLOW_ORIGINS", "http://localhost:5000,http://127.0.0.1:5000"))
    enable_docs: bool = Field(default_factory=lambda: os.getenv("WORLDCHAT_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default_factory=lambda: os.getenv("WORLDCHAT_DOCS_URL", "/docs"))

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
