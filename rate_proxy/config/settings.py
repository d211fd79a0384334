import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field


def _env_flag(name: str, default: str) -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    PORT: int = 3099
    BROWSER_EXECUTABLE_PATH: str | None = None
    BROWSER_HEADLESS: bool = True
    QUOTE_HOST: str = "m.netdania.com"
    FETCH_BACKEND: Literal["browser", "http"] = "browser"
    REFRESH_INTERVAL_SEC: float = Field(default=60.0, gt=0)
    REFRESH_WARMUP_SEC: float = Field(default=2.0, ge=0)
    NAV_TIMEOUT_SEC: float = Field(default=25.0, ge=20, le=25)
    READY_TIMEOUT_SEC: float = Field(default=5.0, ge=0, le=5)
    LOG_BUFFER_SIZE: int = Field(default=50, ge=30, le=50)

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "PORT": os.getenv("PORT"),
            "BROWSER_EXECUTABLE_PATH": os.getenv("BROWSER_EXECUTABLE_PATH") or None,
            "BROWSER_HEADLESS": _env_flag("BROWSER_HEADLESS", "1"),
            "QUOTE_HOST": os.getenv("QUOTE_HOST"),
            "FETCH_BACKEND": os.getenv("FETCH_BACKEND"),
            "REFRESH_INTERVAL_SEC": os.getenv("REFRESH_INTERVAL_SEC"),
            "REFRESH_WARMUP_SEC": os.getenv("REFRESH_WARMUP_SEC"),
            "NAV_TIMEOUT_SEC": os.getenv("NAV_TIMEOUT_SEC"),
            "READY_TIMEOUT_SEC": os.getenv("READY_TIMEOUT_SEC"),
            "LOG_BUFFER_SIZE": os.getenv("LOG_BUFFER_SIZE"),
        }
        # unset vars fall back to the model defaults
        return cls.model_validate({k: v for k, v in raw.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
