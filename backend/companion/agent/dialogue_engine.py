"""
Dialogue Engine - local, rule-based recovery companion

Per call:
1. Load (or lazily create) the conversation's state
2. Active flow?  -> advance it one step, ignore the rule table
3. Rule match?   -> launch its flow, or return one of its templated replies
4. No match      -> reflective-listening fallback
5. Prepend the mentor persona opener (if any), save state, return text

Every path ends in a non-empty string. No I/O besides the state store.
"""
import asyncio
import logging
import random
from typing import Any, Dict, Iterable, Optional, Tuple

from companion.core.config import settings
from .conversation_state import ConversationState, FlowAction, FlowName
from .flows import FLOWS, FlowScript, render
from .intent_classifier import classify
from .knowledge_base import KNOWLEDGE_BASE, IntentRule
from .persona import persona_prefix
from .reflection import DEFAULT_RESPONSES, reflect
from .state_store import ConversationStore, InMemoryConversationStore, KeyedLocks

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_ID = "current_user"

# Which flow each launch action enters
ACTION_FLOWS: Dict[FlowAction, FlowName] = {
    FlowAction.START_CRAVING_FLOW: FlowName.CRAVING_INTERVENTION,
    FlowAction.START_PANIC_FLOW: FlowName.PANIC_INTERVENTION,
    FlowAction.START_HALT_FLOW: FlowName.HALT_ASSESSMENT,
    FlowAction.START_WITHDRAWAL_FLOW: FlowName.WITHDRAWAL_ASSESSMENT,
}


def _coerce_streak(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class DialogueEngine:
    """
    Stateful responder. Share one instance across requests; state is
    kept per conversation id in `store`.

    `rng` must provide random() and choice(seq). Pass a seeded
    random.Random (or a scripted stand-in) to pin replies.
    """

    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        rules: Iterable[IntentRule] = KNOWLEDGE_BASE,
        flows: Optional[Dict[FlowName, FlowScript]] = None,
        rng: Optional[random.Random] = None,
        typing_delay: Tuple[float, float] = (0.0, 0.0),
        default_name: str = "Friend",
    ):
        self.store = store if store is not None else InMemoryConversationStore()
        self.rules = tuple(rules)
        self.flows = dict(FLOWS if flows is None else flows)
        self.rng = rng or random.Random()
        self.typing_delay = typing_delay
        self.default_name = default_name
        self._locks = KeyedLocks()
        self._delay_rng = random.Random()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reply(
        self,
        text: Optional[str],
        streak: int = 0,
        name: Optional[str] = None,
        mentor_name: Optional[str] = None,
        mentor_gender: Optional[str] = None,
        daily_log: Optional[Dict[str, Any]] = None,
        conversation_id: str = DEFAULT_CONVERSATION_ID,
    ) -> str:
        """Produce the next reply for `conversation_id`.

        `daily_log` is accepted for callers that pass today's tracker
        snapshot; no rule reads it yet.
        """
        text = "" if text is None else str(text)
        name = name or self.default_name
        streak = _coerce_streak(streak)
        conversation_id = str(conversation_id or DEFAULT_CONVERSATION_ID)

        with self._locks.hold(conversation_id):
            state = self.store.load(conversation_id)
            if state is None:
                state = ConversationState()
                logger.info(f"[CONV] New conversation: {conversation_id}")

            prefix = persona_prefix(mentor_name, mentor_gender, self.rng)
            body = self._next_reply(text, state, name, streak)
            if not body.strip():
                body = DEFAULT_RESPONSES[0]

            self.store.save(conversation_id, state)

        return prefix + body

    async def respond(
        self,
        text: Optional[str],
        streak: int = 0,
        name: Optional[str] = None,
        mentor_name: Optional[str] = None,
        mentor_gender: Optional[str] = None,
        daily_log: Optional[Dict[str, Any]] = None,
        conversation_id: str = DEFAULT_CONVERSATION_ID,
    ) -> str:
        """Same as reply(), after a short simulated typing pause."""
        await self.typing_pause()
        return self.reply(
            text,
            streak=streak,
            name=name,
            mentor_name=mentor_name,
            mentor_gender=mentor_gender,
            daily_log=daily_log,
            conversation_id=conversation_id,
        )

    async def typing_pause(self) -> None:
        """Simulated "thinking" delay; no-op when the delay is disabled."""
        delay = self._typing_delay()
        if delay > 0:
            await asyncio.sleep(delay)

    def get_state(self, conversation_id: str) -> Optional[ConversationState]:
        with self._locks.hold(conversation_id):
            return self.store.load(conversation_id)

    def reset(self, conversation_id: str) -> bool:
        with self._locks.hold(conversation_id):
            return self.store.reset(conversation_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _typing_delay(self) -> float:
        low, high = self.typing_delay
        if high <= 0:
            return 0.0
        return self._delay_rng.uniform(max(0.0, low), high)

    def _next_reply(self, text: str, state: ConversationState, name: str, streak: int) -> str:
        # 1. Active intervention owns the turn
        if state.in_flow:
            flow = self.flows.get(state.current_flow)
            if flow is not None:
                return flow.advance(state, name)
            logger.warning(f"[FLOW] No script for {state.current_flow.value} - returning to normal")
            state.reset_flow()

        # 2. Classify
        rule = classify(text, self.rules)
        if rule is None:
            return reflect(text, streak, self.rng)

        state.last_intent = rule.intent

        # 3. Launch a flow
        if rule.action is not None:
            return self._launch(rule, state, name)

        # 4. Templated reply
        return render(self.rng.choice(rule.responses), name)

    def _launch(self, rule: IntentRule, state: ConversationState, name: str) -> str:
        flow_name = ACTION_FLOWS[rule.action]

        if flow_name in self.flows:
            state.enter_flow(flow_name)
            logger.info(f"[FLOW] {rule.intent.value} started {flow_name.value}")
        else:
            # halt/withdrawal assessments: one canned line, no state change
            logger.info(f"[FLOW] {flow_name.value} has no script - single reply")

        # Opening line is always the first template, never random
        return render(rule.responses[0], name)


def build_engine(store: Optional[ConversationStore] = None) -> DialogueEngine:
    """Engine wired from settings (state backend, delay, seed)."""
    if store is None:
        if settings.CHAT_STATE_BACKEND == "sql":
            from companion.agent.state_store import SqlConversationStore
            from companion.db.session import SessionLocal

            store = SqlConversationStore(SessionLocal)
        else:
            store = InMemoryConversationStore()

    rng = random.Random(settings.CHAT_RANDOM_SEED) if settings.CHAT_RANDOM_SEED is not None else None

    return DialogueEngine(
        store=store,
        rng=rng,
        typing_delay=(settings.TYPING_DELAY_MIN, settings.TYPING_DELAY_MAX),
        default_name=settings.DEFAULT_DISPLAY_NAME,
    )


_default_engine: Optional[DialogueEngine] = None


def get_default_engine() -> DialogueEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = build_engine()
    return _default_engine


async def generate_local_response(
    prompt: Optional[str],
    user_streak: int = 0,
    user_name: str = "Friend",
    mentor_name: Optional[str] = None,
    mentor_gender: Optional[str] = None,
    daily_log: Optional[Dict[str, Any]] = None,
    conversation_id: str = DEFAULT_CONVERSATION_ID,
) -> str:
    """Module-level entry point bound to the default engine."""
    return await get_default_engine().respond(
        prompt,
        streak=user_streak,
        name=user_name,
        mentor_name=mentor_name,
        mentor_gender=mentor_gender,
        daily_log=daily_log,
        conversation_id=conversation_id,
    )
