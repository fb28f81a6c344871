"""
Reflective-listening fallback

Used only when no flow is active and no rule matched.
Exactly one branch runs, checked in this order:
"i feel" -> "i am" -> "because" -> streak reply -> generic one-liner
"""
import random
from typing import Optional

STREAK_THRESHOLD = 7
STREAK_REPLY_DRAW = 0.7  # streak reply fires when one uniform draw exceeds this

DEFAULT_RESPONSES = (
    "I'm listening. Please go on.",
    "Thank you for sharing that with me. What else is on your mind?",
    "Recovery is a journey of many small steps. I'm here for this one.",
    "That sounds important. Can you explain a bit more?",
    "I hear you. You are not alone in this.",
)


def _suffix_after(text_lower: str, marker: str) -> str:
    # Text between the first occurrence of the marker and the next one
    return text_lower.split(marker)[1].strip()


def reflect(text: Optional[str], streak: int = 0, rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    text_lower = (text or "").lower()

    if "i feel" in text_lower:
        feeling = _suffix_after(text_lower, "i feel")
        return f"It sounds like you're feeling {feeling}. Can you tell me what triggered that feeling?"

    if "i am" in text_lower:
        state = _suffix_after(text_lower, "i am")
        return f"You say you are {state}. How long have you felt like that?"

    if "because" in text_lower:
        return "I see. Identifying the 'why' is a powerful step in recovery. Tell me more."

    if streak > STREAK_THRESHOLD and rng.random() > STREAK_REPLY_DRAW:
        return (
            f"You've held strong for {streak} days. That proves you have resilience. "
            "How can we use that strength today?"
        )

    return rng.choice(DEFAULT_RESPONSES)
