"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    """Typed settings for the After School Classes API."""

    database_url: str
    database_name: str
    database_timeout_ms: int
    host: str
    port: int
    images_dir: Path
    allowed_origins: Tuple[str, ...]
    log_level: str


def _parse_origins(raw: str) -> Tuple[str, ...]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return tuple(origins) or ("*",)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
        database_name=os.getenv("DATABASE_NAME", "afterschool"),
        database_timeout_ms=int(os.getenv("DATABASE_TIMEOUT_MS", "5000")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        images_dir=Path(os.getenv("IMAGES_DIR", str(BASE_DIR / "images"))),
        allowed_origins=_parse_origins(os.getenv("ALLOWED_ORIGINS", "*")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
