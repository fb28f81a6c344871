"""Standalone crisis check and the static resources payload."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from companion.api.deps import get_db
from companion.schemas.chat import CrisisCheckRequest, CrisisCheckResponse
from companion.services.crisis_detection import detect_crisis_language, get_crisis_response, log_crisis_event

router = APIRouter()


@router.post("/check", response_model=CrisisCheckResponse)
def check(data: CrisisCheckRequest, db: Session = Depends(get_db)):
    crisis = detect_crisis_language(data.text)
    if crisis and data.user_id:
        log_crisis_event(db, data.user_id, data.text, crisis)
    return CrisisCheckResponse(
        crisis=crisis,
        crisis_resources=get_crisis_response() if crisis and crisis.needs_resources else None,
    )


@router.get("/resources")
def resources():
    return get_crisis_response()
