"""
Conversation State Model — optional persistent storage for dialogue state.

The engine keeps state in memory by default. This table backs
SqlConversationStore so flows survive restarts and multiple workers
see the same conversation.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from companion.db.base import Base


class ConversationStateRecord(Base):
    """
    One row per conversation.

    Schema:
        chat_id: Conversation identifier (unique)
        state: Active flow name ("normal", "craving_intervention", ...)
        payload: JSON blob with step, last_intent and context_data
        updated_at: Last activity timestamp
    """
    __tablename__ = "conversation_states"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(String(128), unique=True, nullable=False, index=True)
    state = Column(String(64), nullable=False, default="normal")
    payload = Column(JSON, nullable=True, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ConversationStateRecord chat_id={self.chat_id} state={self.state}>"
