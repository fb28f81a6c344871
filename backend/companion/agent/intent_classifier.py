"""
Intent Classifier - deterministic, first match wins

No scoring and no side effects: the same text against the same table
always yields the same rule (or None).
"""
import logging
from typing import Iterable, Optional

from .knowledge_base import KNOWLEDGE_BASE, IntentRule

logger = logging.getLogger(__name__)


def classify(text: Optional[str], rules: Iterable[IntentRule] = KNOWLEDGE_BASE) -> Optional[IntentRule]:
    """Return the first rule whose pattern matches the lower-cased text."""
    text_lower = (text or "").lower()

    for rule in rules:
        if rule.matches(text_lower):
            logger.debug(f"[INTENT] {rule.intent.value} <- {text_lower[:50]!r}")
            return rule

    logger.debug(f"[INTENT] no match <- {text_lower[:50]!r}")
    return None
