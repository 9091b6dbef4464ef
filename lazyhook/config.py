from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Runtime configuration for lazy members and their shutdown drain."""

    guess_methods: list[str] = Field(default_factory=lambda: ["end", "close", "destroy"])
    collect_sync_errors: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "LAZYHOOK_"
        extra = "ignore"


settings = Settings()
