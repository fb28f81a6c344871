"""
Conversation State - per-conversation dialogue memory

One ConversationState per conversation id:
- current_flow: which scripted intervention owns the conversation
- step: position inside that flow's script
- last_intent: most recently matched intent
- context_data: scratch space reserved for flow-local data
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class FlowName(str, Enum):
    """Scripted multi-step protocols. Only one is active at a time."""
    NORMAL = "normal"
    CRAVING_INTERVENTION = "craving_intervention"
    PANIC_INTERVENTION = "panic_intervention"
    # Declared, not state-machine backed (launch returns one canned line)
    HALT_ASSESSMENT = "halt_assessment"
    WITHDRAWAL_ASSESSMENT = "withdrawal_assessment"


class IntentType(str, Enum):
    """Intent tags used by the rule table."""
    GREETING = "greeting"
    CRAVING = "craving"
    CRAVING_FOLLOWUP = "craving_followup"
    MOOD_LOW = "mood_low"
    MOOD_HIGH = "mood_high"
    ANXIETY = "anxiety"
    PANIC_ATTACK = "panic_attack"
    SLEEP = "sleep"
    MOTIVATION = "motivation"
    RELAPSE = "relapse"
    RESILIENCE = "resilience"
    GRATITUDE = "gratitude"
    FAREWELL = "farewell"
    HALT_CHECK = "halt_check"
    NUTRITION = "nutrition"
    HYDRATION = "hydration"
    EXERCISE = "exercise"
    WITHDRAWAL_TIMELINE = "withdrawal_timeline"
    PAWS = "paws"
    UNKNOWN = "unknown"


class FlowAction(str, Enum):
    """Launch actions a rule may carry instead of a plain templated reply."""
    START_CRAVING_FLOW = "start_craving_flow"
    START_PANIC_FLOW = "start_panic_flow"
    START_HALT_FLOW = "start_halt_flow"
    START_WITHDRAWAL_FLOW = "start_withdrawal_flow"


@dataclass
class ConversationState:
    current_flow: FlowName = FlowName.NORMAL
    step: int = 0
    last_intent: IntentType = IntentType.GREETING
    context_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def in_flow(self) -> bool:
        return self.current_flow != FlowName.NORMAL

    def enter_flow(self, flow: FlowName) -> None:
        self.current_flow = flow
        self.step = 0

    def reset_flow(self) -> None:
        self.current_flow = FlowName.NORMAL
        self.step = 0

    def to_payload(self) -> dict:
        """JSON-safe dict for persistent stores."""
        return {
            "current_flow": self.current_flow.value,
            "step": self.step,
            "last_intent": self.last_intent.value,
            "context_data": dict(self.context_data),
        }

    @classmethod
    def from_payload(cls, payload: Optional[dict]) -> "ConversationState":
        """Rebuild state from a stored payload. Unknown values fall back to defaults."""
        payload = payload or {}

        try:
            flow = FlowName(payload.get("current_flow", FlowName.NORMAL.value))
        except ValueError:
            logger.warning(f"[CONV] Unknown flow in payload: {payload.get('current_flow')!r} - resetting")
            flow = FlowName.NORMAL

        try:
            last_intent = IntentType(payload.get("last_intent", IntentType.GREETING.value))
        except ValueError:
            last_intent = IntentType.GREETING

        try:
            step = max(0, int(payload.get("step", 0)))
        except (TypeError, ValueError):
            step = 0

        context_data = payload.get("context_data") or {}
        if not isinstance(context_data, dict):
            context_data = {}

        return cls(
            current_flow=flow,
            step=step,
            last_intent=last_intent,
            context_data=dict(context_data),
        )
