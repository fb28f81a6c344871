"""Application configuration.

Environment variables override all defaults.
The dialogue engine itself is pure; everything here tunes the surrounding
service (state backend, typing delay, CORS, logging).
"""

import os
from pathlib import Path
from typing import List, Optional


# Load .env for local development (safe no-op if not installed)
try:
    from dotenv import load_dotenv  # type: ignore

    _BACKEND_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)
except Exception:
    pass


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


class Settings:
    # Database Configuration (only used when CHAT_STATE_BACKEND=sql)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./companion.db")

    # Conversation state storage: "memory" (default) or "sql"
    CHAT_STATE_BACKEND: str = os.getenv("CHAT_STATE_BACKEND", "memory").lower()

    # Simulated "typing" delay in seconds. Set both to 0 to disable.
    TYPING_DELAY_MIN: float = float(os.getenv("TYPING_DELAY_MIN", "0.8"))
    TYPING_DELAY_MAX: float = float(os.getenv("TYPING_DELAY_MAX", "1.6"))

    # Pin reply selection for demos / reproducible transcripts
    CHAT_RANDOM_SEED: Optional[int] = _optional_int("CHAT_RANDOM_SEED")

    DEFAULT_DISPLAY_NAME: str = os.getenv("DEFAULT_DISPLAY_NAME", "Friend")

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
