from typing import Literal

from pydantic_settings import BaseSettings

__all__ = ("Settings", "settings")


class Settings(BaseSettings):
    model_config = {"env_prefix": "OVERLAYKIT_"}

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    """Level passed to `setup_logging` when the popup module is imported."""

    REQUEST_TIMEOUT: float | None = 30.0
    """Timeout in seconds for remote content requests. None disables it."""


settings = Settings()
