"""Mentor persona openers prepended to every reply."""
import random
from typing import Optional

SUPPRESS_DRAW = 0.8  # prefix dropped when one uniform draw exceeds this (~20%)

MALE_OPENERS = (
    "Man, I hear you. ",
    "Brother, ",
    "Listen, ",
    "From my experience, ",
    "Trust me on this, ",
)

FEMALE_OPENERS = (
    "I hear you, love. ",
    "Sweetheart, listen. ",
    "I understand completely. ",
    "It's okay to feel this way. ",
    "From one survivor to another, ",
)

ALL_OPENERS = MALE_OPENERS + FEMALE_OPENERS


def persona_prefix(
    mentor_name: Optional[str],
    mentor_gender: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Opener for the mentor's voice, or "" when there is no mentor.

    Draws from `rng` only when a mentor name is given: one choice
    (gendered openers), then one suppression draw.
    """
    if not mentor_name:
        return ""

    rng = rng or random.Random()
    gender = (mentor_gender or "").lower()

    if gender == "male":
        prefix = rng.choice(MALE_OPENERS)
    elif gender == "female":
        prefix = rng.choice(FEMALE_OPENERS)
    else:
        prefix = f"{mentor_name} here. "

    if rng.random() > SUPPRESS_DRAW:
        return ""
    return prefix
