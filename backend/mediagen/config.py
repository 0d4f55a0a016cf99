"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """MediaGen Studio settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "MediaGen Studio"
    DEBUG: bool = False

    # --- Gemini API ---
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # --- Models ---
    IMAGE_MODEL: str = "imagen-3.0-generate-002"
    IMAGE_EDIT_MODEL: str = "gemini-2.5-flash-image-preview"
    VIDEO_MODEL: str = "veo-2.0-generate-001"

    # --- HTTP ---
    HTTP_TIMEOUT: float = 60.0
    DOWNLOAD_TIMEOUT: float = 120.0

    # --- Video job polling ---
    VIDEO_POLL_INTERVAL: float = 10.0
    VIDEO_POLL_TIMEOUT: float = 900.0  # 0 disables the cap

    @property
    def video_poll_timeout(self) -> float | None:
        """Overall polling cap in seconds, or None when disabled."""
        return self.VIDEO_POLL_TIMEOUT if self.VIDEO_POLL_TIMEOUT > 0 else None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
