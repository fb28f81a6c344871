"""
Crisis Detection Service

Purpose: Flags messages that suggest overdose, self-harm or suicidal intent
         so the caller can show emergency resources.

Architecture Decision:
- DETERMINISTIC keyword matching, no scoring model
- Runs upstream of the dialogue engine on the same text; the engine
  never sees its verdict
- Overdose > self-harm > suicide keywords, first tier that hits decides

Usage:
    from companion.services.crisis_detection import detect_crisis_language
    severity = detect_crisis_language("I think I took too much")
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from companion.models.crisis_log import CrisisLog

logger = logging.getLogger(__name__)

CRISIS_KEYWORDS = [
    "kill myself",
    "suicide",
    "overdose",
    "end it all",
    "cant take it",
    "dying",
    "no point",
    "give up",
    "lost hope",
    "last option",
    "cut myself",
    "harm myself",
    "want to die",
    "killing myself",
    "jump off",
    "hang myself",
    "slit",
    "poison",
    "drown myself",
    "everything is hopeless",
    "nothing matters",
    "shouldnt exist",
    "dont want to live",
    "life isnt worth",
    "better off dead",
    "relapsed",
]

SELF_HARM_KEYWORDS = [
    "cut myself",
    "hurt myself",
    "harm myself",
    "wound",
    "bleed",
    "burn",
    "punch wall",
]

OVERDOSE_KEYWORDS = [
    "overdose",
    "ods",
    "too much",
    "toxic",
    "poisoned",
    "hospital",
    "emergency",
]


class CrisisSeverity(BaseModel):
    level: str  # low | medium | high | critical
    score: int
    keywords: List[str]

    @property
    def needs_resources(self) -> bool:
        return self.level in ("high", "critical")


def _found(keywords: List[str], text_lower: str) -> List[str]:
    return [kw for kw in keywords if kw in text_lower]


def detect_crisis_language(message: Optional[str]) -> Optional[CrisisSeverity]:
    """Classify a message. Returns None when nothing crisis-related is found."""
    text_lower = (message or "").lower().strip()

    found_overdose = _found(OVERDOSE_KEYWORDS, text_lower)
    if found_overdose:
        return CrisisSeverity(level="critical", score=100, keywords=found_overdose)

    found_harm = _found(SELF_HARM_KEYWORDS, text_lower)
    if len(found_harm) >= 2:
        return CrisisSeverity(level="critical", score=95, keywords=found_harm)
    if len(found_harm) == 1:
        return CrisisSeverity(level="high", score=80, keywords=found_harm)

    found_suicide = _found(CRISIS_KEYWORDS, text_lower)
    if len(found_suicide) >= 3:
        return CrisisSeverity(level="critical", score=90, keywords=found_suicide)
    if len(found_suicide) == 2:
        return CrisisSeverity(level="high", score=75, keywords=found_suicide)
    if len(found_suicide) == 1:
        return CrisisSeverity(level="medium", score=50, keywords=found_suicide)

    return None


def get_crisis_response() -> Dict[str, Any]:
    """Static hotline/action payload shown alongside a crisis warning."""
    return {
        "title": "💙 We're Here For You",
        "message": "Your safety matters to us. Please reach out to trained professionals right now.",
        "hotlines": [
            {
                "name": "National Suicide Prevention Lifeline",
                "number": "988",
                "available": "24/7 Free & Confidential",
            },
            {
                "name": "Crisis Text Line",
                "message": "Text HOME to 741741",
                "available": "24/7 Free",
            },
            {
                "name": "SAMHSA National Helpline",
                "number": "1-800-662-4357",
                "available": "24/7 Free & Confidential",
            },
            {
                "name": "National Poison Control",
                "number": "1-800-222-1222",
                "available": "24/7 Free",
            },
        ],
        "actions": [
            {"label": "Call 911", "action": "emergency"},
            {"label": "Call 988", "action": "crisis_call"},
            {"label": "Text 741741", "action": "crisis_text"},
            {"label": "I'm Safe Now", "action": "dismiss"},
        ],
    }


def log_crisis_event(
    db: Session,
    user_id: Optional[str],
    message: str,
    severity: CrisisSeverity,
) -> Optional[CrisisLog]:
    """
    Record a flagged message. Critical events are marked for admin follow-up.

    Storage failures are logged and swallowed: the user-facing reply must
    not depend on the audit trail.
    """
    if not user_id:
        return None

    try:
        entry = CrisisLog(
            user_id=str(user_id),
            message=message,
            severity=severity.level,
            keywords_detected=list(severity.keywords),
        )
        if severity.level == "critical":
            entry.admin_notified = True
            entry.admin_notified_at = datetime.now(timezone.utc)
            logger.warning(f"[CRISIS] Critical event for user {user_id}: {severity.keywords}")

        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    except Exception:
        db.rollback()
        logger.error(f"[CRISIS] Failed to log crisis event for user {user_id}", exc_info=True)
        return None
