from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# DB SQLite di default nella root del progetto
DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "hospital.sqlite"
DEFAULT_DATABASE_URL = f"sqlite:///{DEFAULT_DB_PATH}"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str
    echo_sql: bool
    log_level: str


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """
    Legge la configurazione dall'ambiente (e da un eventuale .env):
    - HOSPITAL_DATABASE_URL
    - HOSPITAL_DB_ECHO
    - HOSPITAL_LOG_LEVEL
    """
    load_dotenv()
    return Settings(
        database_url=os.getenv("HOSPITAL_DATABASE_URL", DEFAULT_DATABASE_URL),
        echo_sql=_env_flag("HOSPITAL_DB_ECHO"),
        log_level=os.getenv("HOSPITAL_LOG_LEVEL", "INFO").strip().upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
