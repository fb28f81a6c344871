from companion.models.conversation_state import ConversationStateRecord
from companion.models.crisis_log import CrisisLog

__all__ = ["ConversationStateRecord", "CrisisLog"]
