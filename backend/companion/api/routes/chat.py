"""
Chat: one reply per user message, plus state inspection/reset.
The crisis detector runs on the same text before the engine; its verdict
travels alongside the reply and never changes it.
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from companion.agent.dialogue_engine import DialogueEngine
from companion.api.deps import get_db, get_engine
from companion.core.exceptions import ChatError
from companion.schemas.chat import ChatReply, ChatRequest, ConversationStateResponse
from companion.services.crisis_detection import detect_crisis_language, get_crisis_response, log_crisis_event

logger = logging.getLogger(__name__)
router = APIRouter()


def _reply_and_state(engine: DialogueEngine, data: ChatRequest):
    # Blocking: state store load/save under the per-conversation lock
    reply = engine.reply(
        data.text,
        streak=data.streak,
        name=data.name,
        mentor_name=data.mentor_name,
        mentor_gender=data.mentor_gender,
        daily_log=data.daily_log.model_dump() if data.daily_log else None,
        conversation_id=data.conversation_id,
    )
    return reply, engine.get_state(data.conversation_id)


@router.post("/respond", response_model=ChatReply)
async def respond(
    data: ChatRequest,
    db: Session = Depends(get_db),
    engine: DialogueEngine = Depends(get_engine),
):
    """Next companion reply for this conversation."""
    crisis = detect_crisis_language(data.text)
    if crisis:
        logger.info(f"[CHAT] Crisis language ({crisis.level}) in conversation {data.conversation_id}")
        await run_in_threadpool(log_crisis_event, db, data.conversation_id, data.text, crisis)

    await engine.typing_pause()
    try:
        reply, state = await run_in_threadpool(_reply_and_state, engine, data)
    except Exception as e:
        raise ChatError.server_error(e)

    return ChatReply(
        reply=reply,
        conversation_id=data.conversation_id,
        current_flow=state.current_flow.value,
        step=state.step,
        crisis=crisis,
        crisis_resources=get_crisis_response() if crisis and crisis.needs_resources else None,
    )


@router.get("/state/{conversation_id}", response_model=ConversationStateResponse)
def get_state(conversation_id: str, engine: DialogueEngine = Depends(get_engine)):
    """Current flow/step for a conversation. 404 before first contact."""
    state = engine.get_state(conversation_id)
    if state is None:
        raise ChatError.not_found("Conversation", reason=conversation_id)
    return ConversationStateResponse(
        conversation_id=conversation_id,
        current_flow=state.current_flow.value,
        step=state.step,
        last_intent=state.last_intent.value,
        context_data=state.context_data,
    )


@router.delete("/state/{conversation_id}")
def reset_state(conversation_id: str, engine: DialogueEngine = Depends(get_engine)):
    """Forget a conversation; the next message starts fresh."""
    if not engine.reset(conversation_id):
        raise ChatError.not_found("Conversation", reason=conversation_id)
    logger.info(f"[CHAT] Conversation {conversation_id} reset")
    return {"conversation_id": conversation_id, "reset": True}
