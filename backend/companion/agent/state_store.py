"""
Conversation state stores

The engine never owns global state: it loads, mutates and saves a
ConversationState through one of these, keyed by conversation id.

- InMemoryConversationStore: process-local dict (default, tests)
- SqlConversationStore: conversation_states table, survives restarts

Access to one conversation is serialized with a per-key lock; different
conversations never contend.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from sqlalchemy.orm import Session

from companion.models.conversation_state import ConversationStateRecord
from .conversation_state import ConversationState

logger = logging.getLogger(__name__)


class KeyedLocks:
    """One lock per conversation id, created on demand."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            yield


class ConversationStore:
    """Interface: load / save / reset by conversation id."""

    def load(self, conversation_id: str) -> Optional[ConversationState]:
        raise NotImplementedError

    def save(self, conversation_id: str, state: ConversationState) -> None:
        raise NotImplementedError

    def reset(self, conversation_id: str) -> bool:
        """Forget a conversation. Returns True if it existed."""
        raise NotImplementedError


class InMemoryConversationStore(ConversationStore):
    def __init__(self):
        self._states: Dict[str, ConversationState] = {}

    def load(self, conversation_id: str) -> Optional[ConversationState]:
        return self._states.get(conversation_id)

    def save(self, conversation_id: str, state: ConversationState) -> None:
        self._states[conversation_id] = state

    def reset(self, conversation_id: str) -> bool:
        return self._states.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._states)


class SqlConversationStore(ConversationStore):
    """
    Persists state in conversation_states.

    `session_factory` is any zero-arg callable returning a SQLAlchemy
    Session (SessionLocal in the app, a sessionmaker over sqlite:///:memory:
    in tests). Each operation uses its own short-lived session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _get_record(self, db: Session, conversation_id: str) -> Optional[ConversationStateRecord]:
        return db.query(ConversationStateRecord).filter(
            ConversationStateRecord.chat_id == str(conversation_id)
        ).first()

    def load(self, conversation_id: str) -> Optional[ConversationState]:
        db = self.session_factory()
        try:
            record = self._get_record(db, conversation_id)
            if not record:
                return None
            payload = dict(record.payload or {})
            payload.setdefault("current_flow", record.state)
            return ConversationState.from_payload(payload)
        finally:
            db.close()

    def save(self, conversation_id: str, state: ConversationState) -> None:
        db = self.session_factory()
        try:
            record = self._get_record(db, conversation_id)
            payload = state.to_payload()

            if record:
                record.state = state.current_flow.value
                record.payload = payload
            else:
                record = ConversationStateRecord(
                    chat_id=str(conversation_id),
                    state=state.current_flow.value,
                    payload=payload,
                )
                db.add(record)

            db.commit()
            logger.info(f"[CONV] chat_id={conversation_id}, flow={state.current_flow.value}, step={state.step}")
        except Exception:
            db.rollback()
            logger.error(f"[CONV] Failed to save state for chat_id={conversation_id}", exc_info=True)
            raise
        finally:
            db.close()

    def reset(self, conversation_id: str) -> bool:
        db = self.session_factory()
        try:
            record = self._get_record(db, conversation_id)
            if not record:
                return False
            db.delete(record)
            db.commit()
            logger.info(f"[CONV] chat_id={conversation_id} reset")
            return True
        finally:
            db.close()
