"""
Intervention Flows - scripted multi-step conversations (CBT/MI techniques)

Each flow is a FlowScript: an ordered list of prompts plus a closing line.
- prompts[0] is the entry line, emitted by the launcher when the flow starts
- every later user turn advances exactly one state, whatever the user typed
- advancing past the last state emits the closing line and returns to normal

Adding a flow = defining another FlowScript and registering it in FLOWS.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from .conversation_state import ConversationState, FlowName

logger = logging.getLogger(__name__)

# A reply template: literal text, or a function of the user's display name
Template = Union[str, Callable[[str], str]]


def render(template: Template, name: str) -> str:
    if callable(template):
        return template(name)
    return template


@dataclass(frozen=True)
class FlowScript:
    name: FlowName
    prompts: Tuple[Template, ...]
    closing: Template

    @property
    def entry(self) -> Template:
        return self.prompts[0]

    @property
    def last_step(self) -> int:
        return len(self.prompts) - 1

    def advance(self, state: ConversationState, user_name: str) -> str:
        """Move one step forward and return the line for the new position.

        Mutates `state` in place. User input is not inspected.
        """
        next_step = state.step + 1
        if next_step <= self.last_step:
            state.step = next_step
            logger.info(f"[FLOW] {self.name.value} -> step {next_step}")
            return render(self.prompts[next_step], user_name)

        logger.info(f"[FLOW] {self.name.value} complete (from step {state.step}) -> normal")
        state.reset_flow()
        return render(self.closing, user_name)


# Urge surfing: ride the craving like a wave until it breaks
CRAVING_FLOW = FlowScript(
    name=FlowName.CRAVING_INTERVENTION,
    prompts=(
        "I hear you, and I want you to know you're safe here. Let's try 'Urge Surfing' together. \n\n"
        "Close your eyes for a second. Imagine this craving is like a wave in the ocean. It rises, peaks, "
        "and then crashes onto the shore. You don't have to stop the wave - you just have to ride it until it breaks. \n\n"
        "Where do you feel this craving in your body right now? (Chest, stomach, hands?)",

        "Good. That's effective observation. Now, don't fight it. Just notice it: 'I am having a thought about using.' "
        "It's just a thought. It has no power to make you move your muscles. \n\n"
        "Let's take 3 deep breaths together. In... 1, 2, 3. Out... 1, 2, 3. \n\n"
        "Did the intensity change at all?",

        "You're doing great. Cravings usually peak within 15-20 minutes. You've already surfed through part of it! \n\n"
        "For the next 5 minutes, let's distract your brain. Can you name 3 things you can see around you right now?",

        lambda name: (
            "Excellent. You are grounded in reality, not the craving. \n\n"
            f"{name}, look at what you just did - you faced a trigger and didn't use. That is massive strength. \n\n"
            "How are you feeling now compared to when we started?"
        ),
    ),
    closing=(
        "I'm really proud of you for working through that. Whenever a wave comes, know that you have "
        "the surfboard now. I'm here anytime."
    ),
)

# 5-4-3-2-1 grounding for panic
PANIC_FLOW = FlowScript(
    name=FlowName.PANIC_INTERVENTION,
    prompts=(
        "I can hear that you're in distress. Let's slow things down together. Focus only on my words. \n\n"
        "5-4-3-2-1 Grounding. \n\n"
        "Tell me 5 things you can SEE around you right now. Type them out.",

        "Good. Now, tell me 4 things you can physically FEEL (your feet on the floor, the fabric of your shirt, "
        "the air on your skin).",

        "You're doing well, and you're safe. Now tell me 3 things you can HEAR.",
    ),
    closing=(
        "Take a deep breath. You are safe. This feeling is temporary and it is already passing. "
        "You did a great job grounding yourself."
    ),
)


FLOWS: Dict[FlowName, FlowScript] = {
    CRAVING_FLOW.name: CRAVING_FLOW,
    PANIC_FLOW.name: PANIC_FLOW,
}
