from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path("data")
DEFAULT_DATABASE_URL = f"sqlite:///{DATA_DIR / 'chat.db'}"
DEFAULT_MODEL = "gpt-3.5-turbo"

# variables read by the resolver on every call, never cached here
API_KEY_ENV = "OPENAI_API_KEY"
SYSTEM_PROMPT_ENV = "DEFAULT_SYSTEM_PROMPT"


@dataclass(frozen=True)
class Settings:
    """Process-level settings resolved once at startup."""

    database_url: str = DEFAULT_DATABASE_URL
    openai_model: str = DEFAULT_MODEL
    openai_base_url: Optional[str] = None
    log_level: str = "INFO"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8000


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
        openai_model=env.get("OPENAI_MODEL") or DEFAULT_MODEL,
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        environment=env.get("APP_ENV") or "development",
        host=env.get("HOST") or "0.0.0.0",
        port=int(env.get("PORT") or 8000),
    )
