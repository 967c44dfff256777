"""
Runtime settings, read from the environment (and a local .env file).
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    auth: str = ""                    # shared secret for the YouTube routes
    log_level: str = "info"           # "error" | "warn" | "info" | "debug"
    log_file: Optional[str] = None
    fetch_timeout: int = 10
    player_origin: str = "https://www.youtube.com"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("LAVATOOLS_HOST", "0.0.0.0"),
            port=int(os.getenv("LAVATOOLS_PORT", "3000")),
            auth=os.getenv("LAVATOOLS_AUTH", ""),
            log_level=os.getenv("LAVATOOLS_LOG_LEVEL", "info").lower(),
            log_file=os.getenv("LAVATOOLS_LOG_FILE") or None,
            fetch_timeout=int(os.getenv("LAVATOOLS_FETCH_TIMEOUT", "10")),
            player_origin=os.getenv("LAVATOOLS_PLAYER_ORIGIN", "https://www.youtube.com"),
        )


def configure_logging(settings: Settings) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        os.makedirs(os.path.dirname(settings.log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(
        level=LOG_LEVELS.get(settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
