from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from companion.services.crisis_detection import CrisisSeverity


class DailyLog(BaseModel):
    """Today's tracker snapshot. Extra keys are kept as-is."""
    model_config = ConfigDict(extra="allow")

    water: int = 0
    meals: Dict[str, Any] = Field(default_factory=dict)
    exercises: List[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    text: str = ""
    conversation_id: str = Field(default="current_user", min_length=1, max_length=128)
    streak: int = Field(default=0, ge=0)
    name: Optional[str] = None
    mentor_name: Optional[str] = None
    mentor_gender: Optional[str] = None
    daily_log: Optional[DailyLog] = None

    @field_validator("name", "mentor_name", "mentor_gender")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ChatReply(BaseModel):
    reply: str
    conversation_id: str
    current_flow: str
    step: int
    crisis: Optional[CrisisSeverity] = None
    crisis_resources: Optional[Dict[str, Any]] = None


class ConversationStateResponse(BaseModel):
    conversation_id: str
    current_flow: str
    step: int
    last_intent: str
    context_data: Dict[str, Any] = Field(default_factory=dict)


class CrisisCheckRequest(BaseModel):
    text: str
    user_id: Optional[str] = None


class CrisisCheckResponse(BaseModel):
    crisis: Optional[CrisisSeverity] = None
    crisis_resources: Optional[Dict[str, Any]] = None
