"""FastAPI dependencies: DB session and the shared dialogue engine."""
from typing import Generator

from sqlalchemy.orm import Session

from companion.agent.dialogue_engine import DialogueEngine, get_default_engine
from companion.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_engine() -> DialogueEngine:
    """Process-wide engine (state lives in its store)."""
    return get_default_engine()
